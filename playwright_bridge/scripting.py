#!/usr/bin/env python3
"""
# @file purpose: Costruzione ed esecuzione del codice inviato dal chiamante

Il servizio si fida completamente dei suoi chiamanti: il campo "code" di
/function viene valutato come codice Python senza alcuna sandbox e riceve
accesso diretto alla pagina e al contesto Playwright.

Formati accettati per "code":
- un'espressione che produce un callable, es. ``lambda h: h.page.title()``
- un sorgente che definisce funzioni; viene usata l'ultima definita, es.
  ``async def main(h): ...``
"""

import ast
import inspect
import textwrap
from typing import Any, Callable, Dict


class ScriptHandles:
    """Oggetti passati al codice utente: page e context"""

    __slots__ = ("page", "context")

    def __init__(self, page: Any, context: Any):
        self.page = page
        self.context = context

    def __getitem__(self, key: str) -> Any:
        if key not in self.__slots__:
            raise KeyError(key)
        return getattr(self, key)

    def keys(self):
        return list(self.__slots__)


def _last_function_name(tree: ast.Module) -> str:
    names = [
        node.name for node in tree.body
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
    ]
    if not names:
        raise ValueError("The submitted code does not define a function.")
    return names[-1]


def build_callable(code: str) -> Callable[..., Any]:
    """Compila il codice utente e ritorna il callable da invocare"""
    namespace: Dict[str, Any] = {"__name__": "bridge_function"}
    # Codice incollato da una textarea arriva spesso indentato
    code = textwrap.dedent(code).strip()

    try:
        expression = compile(code, "<function>", "eval")
    except SyntaxError:
        # Non è un'espressione: eseguiamo come modulo
        tree = ast.parse(code, "<function>", "exec")
        exec(compile(tree, "<function>", "exec"), namespace)
        candidate = namespace[_last_function_name(tree)]
    else:
        candidate = eval(expression, namespace)

    if not callable(candidate):
        raise TypeError(f"userFunction is not a function (got {type(candidate).__name__})")
    return candidate


async def run_script(function: Callable[..., Any], handles: ScriptHandles) -> Any:
    """Invoca il callable e attende il risultato se è awaitable"""
    result = function(handles)
    if inspect.isawaitable(result):
        result = await result
    return result
