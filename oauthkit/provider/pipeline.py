# oauthkit/provider/pipeline.py
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from ..problems import ProblemReport
from ..result import Err, Ok, Result
from .models import RequestContext

logger = logging.getLogger(__name__)

Stage = Callable[[RequestContext], Optional[ProblemReport]]


class Pipeline:
    """
    An ordered list of named stages. The first stage to return a ProblemReport
    stops the run; hosts customise a pipeline by splicing, replacing or
    removing stages by name.
    """

    def __init__(self, stages: Iterable[Tuple[str, Stage]] = ()):
        self._stages: List[Tuple[str, Stage]] = []
        for name, stage in stages:
            self.append(name, stage)

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._stages]

    def _index(self, name: str) -> int:
        for index, (stage_name, _) in enumerate(self._stages):
            if stage_name == name:
                return index
        raise KeyError(f"No stage named '{name}'")

    def append(self, name: str, stage: Stage) -> None:
        if name in self.names:
            raise ValueError(f"Stage '{name}' is already in the pipeline")
        self._stages.append((name, stage))

    def insert_before(self, existing: str, name: str, stage: Stage) -> None:
        if name in self.names:
            raise ValueError(f"Stage '{name}' is already in the pipeline")
        self._stages.insert(self._index(existing), (name, stage))

    def insert_after(self, existing: str, name: str, stage: Stage) -> None:
        if name in self.names:
            raise ValueError(f"Stage '{name}' is already in the pipeline")
        self._stages.insert(self._index(existing) + 1, (name, stage))

    def replace(self, name: str, stage: Stage) -> None:
        self._stages[self._index(name)] = (name, stage)

    def remove(self, name: str) -> None:
        del self._stages[self._index(name)]

    def copy(self) -> "Pipeline":
        return Pipeline(self._stages)

    def run(self, context: RequestContext) -> Result[RequestContext]:
        for name, stage in self._stages:
            problem = stage(context)
            if problem is not None:
                context.problems.append(problem)
                consumer_key = context.parameters.consumer_key if context.parameters else None
                logger.warning(
                    f"{context.endpoint.value}: stage '{name}' rejected request "
                    f"from consumer '{consumer_key}' with {problem.problem.value}"
                )
                return Err(problem)
        return Ok(context)
