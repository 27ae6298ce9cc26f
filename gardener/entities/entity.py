class GardenEntityException(Exception):
    """
    Base exception raised when a snapshot record cannot be turned into an entity.
    """
