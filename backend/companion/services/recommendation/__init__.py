"""Recommendation engine: context-aware activity scoring.

Modules:
    config      Weights, distance curve, time/weather tables
    signals     Distance, time, weather, preference and novelty signals
    engine      Weighted scoring, why-now selection, craving search, serendipity

Pipeline:
    ScoringContext → signals → RecommendationEngine.score
    → top / search_craving / get_serendipity
"""
