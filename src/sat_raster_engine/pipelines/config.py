import numbers
from dataclasses import dataclass
from typing import Optional, Union

from sat_raster_engine.configs import constants
from sat_raster_engine.core.grid import AddressingPolicy, resolve_policy
from sat_raster_engine.errors import ConfigurationError

@dataclass(frozen=True)
class TransformConfig:
    grain_size: int = constants.GRAIN_SIZE  # destination cells per work chunk
    max_workers: Optional[int] = constants.MAX_WORKERS  # None = os.cpu_count()
    parallel: bool = True  # False = serial loop in the calling thread
    seed: Optional[int] = None  # seeds the tie breaks of mode; None = fresh entropy
    addressing: Union[str, AddressingPolicy] = AddressingPolicy.CLAMP  # policy of the source grid
    interrupt_check_every: int = constants.INTERRUPT_CHECK_EVERY  # serial cancel polling, in cells

    def __post_init__(self) -> None:
        if self.grain_size <= 0:
            raise ConfigurationError(f"grain_size must be positive, got {self.grain_size}")
        if self.max_workers is not None and self.max_workers <= 0:
            raise ConfigurationError(f"max_workers must be positive, got {self.max_workers}")
        if self.interrupt_check_every <= 0:
            raise ConfigurationError(
                f"interrupt_check_every must be positive, got {self.interrupt_check_every}"
            )
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, numbers.Integral) or self.seed < 0
        ):
            raise ConfigurationError(f"seed must be None or a non-negative integer, got {self.seed!r}")
        object.__setattr__(self, "addressing", resolve_policy(self.addressing))

def init_transform_config(
    grain_size: int = constants.GRAIN_SIZE,
    max_workers: Optional[int] = constants.MAX_WORKERS,
    parallel: bool = True,
    seed: Optional[int] = None,
    addressing: Union[str, AddressingPolicy] = AddressingPolicy.CLAMP,
    interrupt_check_every: int = constants.INTERRUPT_CHECK_EVERY,
) -> TransformConfig:
    """
    Helper function to initialize TransformConfig
    """
    return TransformConfig(
        grain_size=grain_size,
        max_workers=max_workers,
        parallel=parallel,
        seed=seed,
        addressing=addressing,
        interrupt_check_every=interrupt_check_every,
    )
