# Register all blueprints here
def register_blueprints(app):
    from .reports import reports_bp

    app.register_blueprint(reports_bp)
