# Application Stats Package
from .aggregator import StatisticsAggregator
from .service import StatsService

__all__ = ["StatisticsAggregator", "StatsService"]
