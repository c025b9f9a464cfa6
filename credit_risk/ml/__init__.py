"""ML package namespace."""

from .feature_builder import FeatureWindow, build_features
from .inference import CreditScoringInferenceService
from .registry import ScoringService, ScoringServiceRegistry
from .scorer import ScoringArtifact, load_artifact, score
from .synthetic import generate_synthetic_credit_dataset
from .trainer import train_and_save_model

__all__ = [
    "FeatureWindow",
    "build_features",
    "score",
    "ScoringArtifact",
    "load_artifact",
    "CreditScoringInferenceService",
    "ScoringService",
    "ScoringServiceRegistry",
    "generate_synthetic_credit_dataset",
    "train_and_save_model",
]
