"""
Flask host for the workflow runtime.
"""
import logging
from flask import Flask
from flask_cors import CORS

from app.middleware import register_error_handlers
from app.routes import register_blueprints
from graph_engine.validation import WorkflowValidator
from graph_executor import WorkflowRunner

logger = logging.getLogger(__name__)


def create_app(runner_factory=None, validator=None) -> Flask:
    """
    Build the Flask application.

    Args:
        runner_factory: Callable accepting ``sink=`` and returning a
            WorkflowRunner; defaults to WorkflowRunner itself.
        validator: WorkflowValidator to use for /workflow/validate; defaults
            to one checking against the runner registry's known types.
    """
    runner_factory = runner_factory or WorkflowRunner
    if validator is None:
        validator = WorkflowValidator(runner_factory().registry.known_types)

    app = Flask(__name__)
    CORS(app)

    register_error_handlers(app)
    register_blueprints(app, runner_factory, validator)
    logger.debug("Registered routes: %s", sorted(rule.rule for rule in app.url_map.iter_rules()))
    return app
