"""Look up a swimmer's SwimCloud profile and serve it as JSON."""

from .SwimProfile import (
    AquaRankError,
    InvalidTimeFormat,
    ScrapeFailure,
    SwimmerNotFound,
    SwimmerRecord,
    TimedEvent,
    lookupSwimmer,
    parseSwimmerProfile,
    parseSwimmerProfileHTML,
    timeToSeconds,
)

__version__ = "0.1.0"
