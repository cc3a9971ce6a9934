"""
Route blueprints registration.
"""
from . import nodes, workflows


def register_blueprints(app, runner_factory, validator):
    """Register all route blueprints with the Flask app."""

    # Node catalog and health
    nodes_bp = nodes.init_routes()
    app.register_blueprint(nodes_bp)

    # Workflow validation, execution and document helpers
    workflows_bp = workflows.init_routes(runner_factory, validator)
    app.register_blueprint(workflows_bp)
