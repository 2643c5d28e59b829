import logging

from . import create_app
from .rpc.server import create_server
from .src.config import Config


def main():
    app = create_app()
    server, grpc_port = create_server(
        app.extensions["spotify_search"],
        f"[::]:{Config.GRPC_PORT}",
        max_workers=Config.GRPC_WORKERS,
    )
    server.start()
    logging.info("gRPC listening on port %s", grpc_port)
    try:
        app.run(host="0.0.0.0", port=Config.PORT, debug=Config.DEBUG, threaded=True, use_reloader=False)
    finally:
        server.stop(grace=5)


if __name__ == "__main__":
    main()
