"""Travel route planner backend."""
