from annotab.web.routers.actions import router as actions_router

__all__ = [
    "actions_router",
]
