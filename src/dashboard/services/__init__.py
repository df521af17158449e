from src.dashboard.services.consistency import ConsistencyCoordinator, SyncStep

__all__ = ["ConsistencyCoordinator", "SyncStep"]
