"""Analysis: behavior profiling and engagement insights

Components:
    ranking.py: Named tie-break rules over hour/day histograms
    behavior.py: History -> UserBehaviorData
    insights.py: Per-type engagement -> PersonalizationInsights
"""

from smartnotify.analysis.behavior import BehaviorAnalyzer, build_profile
from smartnotify.analysis.insights import InsightsGenerator, build_insights

__all__ = [
    "BehaviorAnalyzer",
    "InsightsGenerator",
    "build_insights",
    "build_profile",
]
