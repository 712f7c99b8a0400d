from flask import Flask


def create_app(sink=None, settings=None):
    """
    Read-only HTTP surface over the persisted TLE records and orbit snapshot.
    `sink` defaults to build_sink(IngestSettings.from_env()).
    """
    app = Flask(__name__)

    if sink is None:
        from tle_ingest.app.persistence import build_sink
        from tle_ingest.settings import IngestSettings
        sink = build_sink(settings or IngestSettings.from_env())
    app.config["TLE_SINK"] = sink

    from tle_ingest.app.routes import main_bp
    app.register_blueprint(main_bp)

    return app
