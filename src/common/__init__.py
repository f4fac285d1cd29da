from common import llm
from common.ids import generate_id

__all__ = ["llm", "generate_id"]
