"""GeoSignals: provenance-tagged geographic signal composition."""

from geosignals.config.settings import RealOnlyPolicy
from geosignals.pipelines.orchestration import compose_signals
from geosignals.shared.models import Briefing, GeoSignalsEnvelope

__version__ = "1.0.0"

__all__ = ["Briefing", "GeoSignalsEnvelope", "RealOnlyPolicy", "compose_signals"]
