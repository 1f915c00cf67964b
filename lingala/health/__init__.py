from lingala.health.router import router


__all__ = ["router"]
