"""Live compile pipeline.

Components:
    - context.py: PlaygroundContext, observable source / dialect / options
    - sequencer.py: RequestSequencer and RunToken ("last intent wins")
    - sink.py: ResultSink holding the latest committed SQL
    - loading.py: LoadingState scopes for the busy indicator
    - pipeline.py: CompilePipeline wiring everything together
"""

from playground.pipeline.context import PlaygroundContext
from playground.pipeline.loading import LoadingState
from playground.pipeline.pipeline import CompilePipeline
from playground.pipeline.sequencer import RequestSequencer, RunToken
from playground.pipeline.sink import ResultSink

__all__ = [
    "CompilePipeline",
    "PlaygroundContext",
    "RequestSequencer",
    "RunToken",
    "ResultSink",
    "LoadingState",
]
