from .playground import compile_source, create_pipeline, restore_shared_state

__all__ = [
    "compile_source",
    "create_pipeline",
    "restore_shared_state",
]
