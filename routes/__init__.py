from routes.main import main_bp
from routes.conditions import conditions_bp
from routes.charts import chart_bp


def init_routes(app):
    app.register_blueprint(main_bp)
    app.register_blueprint(conditions_bp)
    app.register_blueprint(chart_bp)
