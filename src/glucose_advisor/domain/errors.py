"""Infrastructure failures raised at the storage and advisory boundaries."""


class CatalogUnavailableError(RuntimeError):
    """The nutrient catalog could not be queried."""


class AdvisoryUnavailableError(RuntimeError):
    """The external advisory service failed or returned an invalid payload."""
