from .planner_router import router as planner_router

__all__ = ["planner_router"]
