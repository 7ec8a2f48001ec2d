"""
Configuration management for the MCMC posterior model.

This module handles the settings consumed when building a posterior model:
particle count, surrogate and criteria kinds, kernel prior, sampler tuning
and worker pool size. Settings can be overridden with environment variables
using pydantic settings management.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LearningType(str, Enum):
    """How kernel hyperparameters are learned."""
    MCMC = "mcmc"
    EMPIRICAL = "empirical"


class MCMCSettings(BaseSettings):
    """
    Posterior model settings with environment variable support.

    All settings can be overridden using environment variables with the
    prefix 'BOMCMC_' (e.g., BOMCMC_N_PARTICLES=20).

    Particle count and kind selectors are checked when the ensemble is
    built, so that invalid values surface as ConfigurationError.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOMCMC_",
        env_file=".env",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )

    # Ensemble settings
    n_particles: int = Field(default=10, description="Number of MCMC particles")
    learning_type: LearningType = Field(
        default=LearningType.MCMC,
        description="Hyperparameter learning strategy"
    )
    surrogate: str = Field(default="gaussian_process", description="Surrogate model kind")
    criteria: str = Field(default="ei", description="Criteria kind (ei, lcb, pi, hedge)")
    n_workers: int = Field(default=1, description="Worker threads for per-particle work")
    random_seed: Optional[int] = Field(default=None, description="Random seed")

    # Gaussian process settings
    kernel: str = Field(default="matern52", description="Kernel type")
    kernel_hp_mean: float = Field(default=0.0, description="Prior mean of log length-scales")
    kernel_hp_std: float = Field(default=1.0, description="Prior std of log length-scales")
    signal_variance: float = Field(default=1.0, description="Kernel signal variance")
    noise: float = Field(default=1e-6, description="Observation noise variance")

    # Criteria settings
    ei_xi: float = Field(default=0.0, description="Expected improvement exploration margin")
    lcb_beta: float = Field(default=1.0, description="Lower confidence bound exploration weight")
    hedge_criteria: List[str] = Field(
        default=["ei", "lcb", "pi"],
        description="Criteria in the Hedge portfolio"
    )
    hedge_eta: float = Field(default=1.0, description="Hedge learning rate")

    # Slice sampler settings
    burn_in: int = Field(default=100, description="Burn-in iterations")
    thinning: int = Field(default=1, description="Iterations between kept samples")
    slice_width: float = Field(default=1.0, description="Initial slice bracket width")
    max_stepping_out: int = Field(default=50, description="Maximum stepping-out steps")
    max_shrinkage: int = Field(default=100, description="Maximum shrinkage steps")

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    @field_validator("kernel_hp_std", "signal_variance", "slice_width", "hedge_eta")
    @classmethod
    def validate_positive(cls, v):
        """Scale-like settings must be strictly positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("noise", "ei_xi", "lcb_beta", "burn_in")
    @classmethod
    def validate_non_negative(cls, v):
        """Settings that may be zero but not negative."""
        if v < 0:
            raise ValueError("must be non-negative")
        return v

    @field_validator("thinning", "n_workers", "max_stepping_out", "max_shrinkage")
    @classmethod
    def validate_at_least_one(cls, v):
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return self.model_dump(mode="json")

