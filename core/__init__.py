# Core: frame adapter, inference gateway, classifiers, overlay, capture

from core.models import FaceAnalysis, Frame, UprightImage, unified_results_schema
from core.pipeline import FaceAnalysisPipeline

__all__ = ["FaceAnalysis", "FaceAnalysisPipeline", "Frame", "UprightImage", "unified_results_schema"]
