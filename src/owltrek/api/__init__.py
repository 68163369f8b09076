"""
OwlTrek API - Business Logic Layer

This package contains the night forecasting logic, separated from CLI
presentation concerns.

The API is organized into logical subpackages:
- core: Shared enums, constants, exceptions, dates and time utilities
- astronomy: Moon and sun calculations
- location: Observer location and weather
- observation: Night analysis and planning
"""

# Activate deal contracts for runtime validation
import deal


deal.activate()

__all__ = [
    # Package is organized into subpackages - import directly from them:
    # from owltrek.api.observation.night_analyzer import ...
    # from owltrek.api.location.weather import ...
    # etc.
]
