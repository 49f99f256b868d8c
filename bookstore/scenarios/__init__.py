"""Pre-built simulations for sample data and demos."""

from bookstore.scenarios.back_office import BackOfficeScenario

__all__ = ["BackOfficeScenario"]
