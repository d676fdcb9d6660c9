"""Scoring module for meal reuse."""

from .meal_scorer import MealScorer, ScoringWeights, MealContext, correct_macros
from .reuse_matcher import ReuseMatcher, TasteProfile, ScoredCandidate

__all__ = [
    "MealScorer",
    "ScoringWeights",
    "MealContext",
    "correct_macros",
    "ReuseMatcher",
    "TasteProfile",
    "ScoredCandidate",
]
