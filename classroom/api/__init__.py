"""HTTP surface: blueprints, auth decorators and error handlers."""
