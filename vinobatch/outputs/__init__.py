from .base_output import BaseOutput
from .log_output import LogOutput

__all__ = ["BaseOutput", "LogOutput"]
