from dataclasses import dataclass
from typing import Optional


@dataclass
class SolverSettings:
    """
    Settings that control how a field is solved.
    """
    width: int = 16                   # grid width in cells
    height: int = 16                  # grid height in cells
    seed: Optional[int] = None        # random seed, None for nondeterministic runs
    step_delay_ms: int = 50           # delay between timed steps
    max_retries: int = 0              # alternative tiles tried after a contradiction

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Grid size must be positive, got {self.width}x{self.height}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def to_dict(self) -> dict:
        return {
            'width': self.width,
            'height': self.height,
            'seed': self.seed,
            'step_delay_ms': self.step_delay_ms,
            'max_retries': self.max_retries
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SolverSettings':
        return cls(
            width=data.get('width', 16),
            height=data.get('height', 16),
            seed=data.get('seed'),
            step_delay_ms=data.get('step_delay_ms', 50),
            max_retries=data.get('max_retries', 0)
        )
