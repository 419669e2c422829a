from flashdeck.routes.generation import router as generation_router
from flashdeck.routes.guest import router as guest_router
from flashdeck.routes.workspace import router as workspace_router

__all__ = ["generation_router", "guest_router", "workspace_router"]
