"""
Master API Application

FastAPI application for the master (control plane) component.
"""

from fastapi import FastAPI

from master.api import admin, client, node, user


def create_app(cluster_name: str = "cfs_cluster", node_monitor=None) -> FastAPI:
    app = FastAPI(title="CFS Master Service")

    # Include all API routers
    app.include_router(admin.router)
    app.include_router(client.router)
    app.include_router(user.router)
    app.include_router(node.router)

    app.state.cluster_name = cluster_name
    app.state.node_monitor = node_monitor

    @app.get("/")
    def root():
        return {
            "service": "master",
            "cluster": app.state.cluster_name,
        }

    return app
