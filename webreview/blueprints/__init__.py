"""
WebReview
Blueprint registry.
"""


def register_blueprints(app):
    """Attach every API blueprint to *app*."""
    from webreview.blueprints.auth_bp import auth_bp
    from webreview.blueprints.dashboard_bp import dashboard_bp
    from webreview.blueprints.feedback_bp import feedback_bp
    from webreview.blueprints.health_bp import health_bp
    from webreview.blueprints.project_bp import project_bp
    from webreview.blueprints.user_bp import user_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(feedback_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(health_bp)
