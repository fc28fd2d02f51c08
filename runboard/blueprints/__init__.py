"""
Runboard blueprint registry.
"""


def register_blueprints(app):
    """Attach every API blueprint to ``app``."""
    from runboard.blueprints.auth_bp import auth_bp
    from runboard.blueprints.coordinator_bp import coordinator_bp
    from runboard.blueprints.health_bp import health_bp
    from runboard.blueprints.submission_bp import submission_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(submission_bp)
    app.register_blueprint(coordinator_bp)
