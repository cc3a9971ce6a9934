"""
Node catalog and health routes.
"""
import logging
from flask import Blueprint
from app.utils.route_decorators import handle_route_errors
from app.utils.request_validators import RequestField, extract_query_params, or_none
from graph_engine.catalog import CATEGORY_INFO, group_by_category, list_node_definitions

logger = logging.getLogger(__name__)


def init_routes():
    """Initialize routes."""
    bp = Blueprint('nodes', __name__)

    @bp.route('/health', methods=['GET'])
    @handle_route_errors("health check")
    def health_check():
        return {"status": "ok"}

    @bp.route('/nodes', methods=['GET'])
    @handle_route_errors("listing nodes")
    def list_nodes():
        """List available node types grouped by category."""
        params = extract_query_params(RequestField('category', transform=or_none))
        definitions = list_node_definitions(params['category'])

        available_categories = [
            {"id": key, "label": info.label, "color": info.color, "description": info.description}
            for key, info in CATEGORY_INFO.items()
        ]

        if not definitions:
            logger.info("No nodes found in category: %s", params['category'])
            return {"total": 0, "categories": [], "available_categories": available_categories}

        categories = []
        for category, category_nodes in group_by_category(definitions).items():
            info = CATEGORY_INFO.get(category)
            categories.append({
                "id": category,
                "label": info.label if info else category.upper(),
                "color": info.color if info else "#888888",
                "description": info.description if info else "",
                "nodes": [definition.to_dict() for definition in category_nodes],
            })

        return {
            "total": len(definitions),
            "categories": categories,
            "available_categories": available_categories,
        }

    return bp
