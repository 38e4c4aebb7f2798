"""Source-agnostic rule engine for building data checks.

This package contains only domain logic:
- Rule inputs are a building record, the rules config and an optional geocoder.
- No Supabase, Swisstopo, or other network calls live here.
"""

from .config import RulesConfig
from .context import GeocodeResult, RuleContext, haversine_distance, resolve
from .models import (
    Building,
    CheckResult,
    ChunkResult,
    ConfidenceScores,
    Finding,
    RuleInfo,
    Severity,
    SourceField,
)
from .registry import RuleRegistry
from .rules import build_registry
from .runner import BatchRunner, summarize
