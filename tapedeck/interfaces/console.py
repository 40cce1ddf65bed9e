import sys
from typing import Callable, Optional, TextIO

from tapedeck.domain.errors import OperatorAbort
from tapedeck.domain.ports import Operator


class ConsoleOperator(Operator):
    """Operator talking through stdin/stdout."""

    def __init__(self, input_func: Callable[[str], str] = input, output: Optional[TextIO] = None):
        self._input = input_func
        self._output = output

    def ask(self, prompt: str) -> str:
        try:
            return self._input(prompt).strip()
        except EOFError:
            raise OperatorAbort("End of input")

    def say(self, message: str = "") -> None:
        print(message, file=self._output or sys.stdout)
