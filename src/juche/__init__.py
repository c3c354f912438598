from .container import Vec
from .model import IN, OUT, Input, Step
from .dsl import new_step, add_argument, add_input, add_dependency, step, builder, StepBuilder, targets
from .scanner import scan_auto_dependencies, ScanError
from .runner import build, Builder, BuildError, BuildReport

__all__ = [
    "Vec",
    "IN",
    "OUT",
    "Input",
    "Step",
    "new_step",
    "add_argument",
    "add_input",
    "add_dependency",
    "step",
    "builder",
    "StepBuilder",
    "targets",
    "scan_auto_dependencies",
    "ScanError",
    "build",
    "Builder",
    "BuildError",
    "BuildReport",
]
