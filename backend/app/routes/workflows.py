"""
Workflow routes: validation, execution and document helpers.
"""
import asyncio
import logging
from flask import Blueprint
from app.utils.route_decorators import handle_route_errors, success_response
from app.utils.request_validators import (
    RequestField, extract_json_fields, is_dict, non_empty_string, or_none, strip_whitespace, to_bool,
)
from config import DEFAULT_RPC_ENDPOINT
from flow_control import FlowControlHub, create_flow_config
from graph_engine.catalog import CATEGORY_INFO
from graph_engine.schema import describe_workflow, new_workflow, parse_workflow
from graph_executor import RunOptions

logger = logging.getLogger(__name__)


def _workflow_field():
    return RequestField('workflow', required=True, validator=is_dict,
                        error_message="No workflow provided")


def init_routes(runner_factory, validator):
    """Initialize routes with dependencies."""
    bp = Blueprint('workflows', __name__)

    @bp.route('/workflow/validate', methods=['POST'])
    @handle_route_errors("validating workflow")
    def validate_workflow():
        """Validate a workflow document without executing it."""
        document = extract_json_fields(_workflow_field())['workflow']
        report = validator.validate(document)

        nodes = document.get('nodes')
        edges = document.get('edges')
        return {
            **report.to_dict(),
            "name": document.get('name') or 'Unnamed',
            "total_nodes": len(nodes) if isinstance(nodes, list) else 0,
            "total_edges": len(edges) if isinstance(edges, list) else 0,
            "rpc_endpoint": document.get('rpcEndpoint') or 'Not set',
        }

    @bp.route('/workflow/execute', methods=['POST'])
    @handle_route_errors("executing workflow")
    def execute_workflow():
        """Run a workflow to completion and return its summary."""
        data = extract_json_fields(
            _workflow_field(),
            RequestField('rpc', transform=or_none),
            RequestField('keypair', transform=or_none),
            RequestField('dry_run', default=False, transform=to_bool),
            RequestField('verbose', default=False, transform=to_bool),
        )
        options = RunOptions(
            rpc=data['rpc'],
            keypair=data['keypair'],
            dry_run=data['dry_run'],
            verbose=data['verbose'],
        )

        # Each request gets its own sink so outputs never mix across runs
        sink = FlowControlHub(create_flow_config("broadcast"))
        runner = runner_factory(sink=sink)
        summary = asyncio.run(runner.execute(data['workflow'], options))

        return success_response(
            data=summary.to_dict(),
            outputs=[record.to_dict() for record in sink.records],
        )

    @bp.route('/workflow/info', methods=['POST'])
    @handle_route_errors("describing workflow")
    def workflow_info():
        workflow = parse_workflow(extract_json_fields(_workflow_field())['workflow'])
        info = describe_workflow(workflow)
        for entry in info['categories']:
            category = CATEGORY_INFO.get(entry['category'])
            entry['label'] = category.label if category else entry['category']
            entry['color'] = category.color if category else '#888888'
        return info

    @bp.route('/workflow/new', methods=['POST'])
    @handle_route_errors("creating workflow")
    def create_workflow():
        data = extract_json_fields(
            RequestField('name', required=True, validator=non_empty_string,
                         transform=strip_whitespace, error_message="Name is required"),
            RequestField('description', transform=or_none),
            RequestField('rpcEndpoint', default=DEFAULT_RPC_ENDPOINT, transform=or_none),
        )
        workflow = new_workflow(
            data['name'],
            description=data['description'],
            rpc_endpoint=data['rpcEndpoint'] or DEFAULT_RPC_ENDPOINT,
        )
        logger.info("Created workflow %s (%s)", workflow.name, workflow.id)
        return workflow.to_dict(), 201

    @bp.route('/workflow/export', methods=['POST'])
    @handle_route_errors("exporting workflow")
    def export_workflow():
        workflow = parse_workflow(extract_json_fields(_workflow_field())['workflow'])
        return workflow.to_export_dict()

    return bp
