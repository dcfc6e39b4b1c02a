import re
import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import jinja2
import msgspec
import structlog

from installflow.application.port import CommandRegistry, TemplateRenderer
from installflow.domain.entity import Workflow
from installflow.domain.exception import (
    MalformedDefinitionError,
    PollTimeoutError,
    TemplateError,
    WorkflowDefinitionError,
)
from installflow.domain.service import UUIDGenerator, validate_workflow

logger = structlog.get_logger(__name__)

T = TypeVar("T")

EMPTY_PARAMETERS: dict[str, Any] = {}


def strip_comments(source: str) -> str:
    """
    Remove ``//`` line comments, leaving ``//`` inside JSON string literals untouched.

    :param source: The workflow source
    :type source: str
    :returns: The source without comments
    :rtype: str
    """
    lines = []
    for line in source.splitlines():
        in_string = False
        escaped = False
        cut = len(line)
        for idx, char in enumerate(line):
            if escaped:
                escaped = False
            elif char == "\\" and in_string:
                escaped = True
            elif char == '"':
                in_string = not in_string
            elif char == "/" and not in_string and line.startswith("//", idx):
                cut = idx
                break
        lines.append(line[:cut])
    return "\n".join(lines)


_TAG = re.compile(r"(\{\{-?|\{%-?)(.*?)(-?\}\}|-?%\})", re.DOTALL)
_ROOT_DOT = re.compile(r"(^|[\s(\[,=:|!<>+*/~-])\.(?=[A-Za-z_])")


def resolve_root_references(source: str) -> str:
    """
    Rewrite root references written as ``.Field.SubField`` to ``Field.SubField``.

    Only text inside ``{{ }}`` and ``{% %}`` tags is touched, so ``{{.InstallRequest.InstallId}}``
    and ``{{ InstallRequest.InstallId }}`` render the same value.

    :param source: The template text
    :type source: str
    :returns: The template with root references resolved
    :rtype: str
    """

    def rewrite(match: re.Match) -> str:
        return match.group(1) + _ROOT_DOT.sub(r"\1", match.group(2)) + match.group(3)

    return _TAG.sub(rewrite, source)


class JinjaTemplateRenderer(TemplateRenderer):
    """
    Renders workflow sources with Jinja2.

    Undefined references fail instead of rendering empty strings, so a parameter
    bag missing a referenced field is reported as a ``TemplateError``.
    References may be written ``.InstallRequest.InstallId`` or ``InstallRequest.InstallId``.
    """

    def __init__(self):
        self._env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

    def render(self, source: str, params: dict[str, Any], name: str) -> str:
        try:
            template = self._env.from_string(resolve_root_references(source))
            return template.render(**params)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(f"invalid template at line {e.lineno}: {e.message}", name) from e
        except jinja2.TemplateError as e:
            raise TemplateError(f"cannot render template: {e}", name) from e


class WorkflowDefinition(msgspec.Struct, forbid_unknown_fields=True):
    """Shape of a rendered workflow source before its commands are decoded."""

    description: str
    commands: list[dict[str, Any]]


def to_template_params(params: Any) -> dict[str, Any]:
    """
    Convert a parameter bag into the mapping handed to the template.

    Structs and dataclasses are converted to builtins, honouring their field renames.

    :param params: A mapping, msgspec Struct or dataclass
    :type params: Any
    :returns: The template context
    :rtype: dict[str, Any]
    """
    if params is None:
        return {}
    if isinstance(params, Mapping):
        return {k: msgspec.to_builtins(v) for k, v in params.items()}
    converted = msgspec.to_builtins(params)
    if not isinstance(converted, dict):
        raise TypeError(f"Workflow parameters must be a mapping, got {type(params).__name__}")
    return converted


class WorkflowParser:
    """
    Turns a templated workflow source into a Workflow.

    Steps: strip comments, render the template, decode the JSON, decode each
    command through the registry. Any failure aborts the whole parse.
    """

    def __init__(self, registry: CommandRegistry, renderer: TemplateRenderer | None = None):
        self.registry = registry
        self.renderer = renderer if renderer is not None else JinjaTemplateRenderer()
        self.ids = UUIDGenerator()

    def parse(self, source: str, name: str, params: Any = None) -> Workflow:
        """
        Parse a workflow source.

        :param source: Workflow source with template directives and ``//`` comments
        :type source: str
        :param name: Human-readable workflow name used for diagnostics
        :type name: str
        :param params: The parameter bag available to the template
        :type params: Any
        :returns: The parsed workflow
        :rtype: Workflow
        :raises TemplateError: If the template cannot be rendered
        :raises MalformedDefinitionError: If the rendered text is not a valid definition
        :raises UnknownCommandError: If a command kind is not registered
        """
        rendered = self.renderer.render(strip_comments(source), to_template_params(params), name)
        try:
            definition = msgspec.json.decode(rendered, type=WorkflowDefinition)
        except msgspec.DecodeError as e:
            raise MalformedDefinitionError(f"invalid workflow definition: {e}", name) from e

        commands = []
        for position, raw in enumerate(definition.commands):
            try:
                commands.append(self.registry.decode(raw))
            except WorkflowDefinitionError as e:
                raise e.attach(name, f"command #{position}")

        workflow = Workflow(
            id=self.ids.generate(),
            name=name,
            description=definition.description,
            commands=commands,
        )
        try:
            validate_workflow(workflow)
        except ValueError as e:
            raise MalformedDefinitionError(str(e), name) from e
        logger.debug("Workflow parsed", workflow=name, commands=len(commands))
        return workflow


class RetryPolicy:
    """Simple retry with exponential backoff."""

    def __init__(self, base_sleep: float = 0.1):
        self.base_sleep = base_sleep

    def run(self, func: Callable[[], T], retries: int) -> T:
        last_exc = None
        retries = max(retries, 0)
        for attempt in range(retries + 1):
            try:
                return func()
            except Exception as e:
                last_exc = e
                if attempt < retries:
                    logger.warning("Attempt failed, retrying", attempt=attempt + 1, error=str(e))
                    time.sleep(self.base_sleep * (2**attempt))
                else:
                    raise last_exc


class Poller:
    """
    Polls a predicate until it holds or a deadline passes.

    Shared by everything that needs to wait for readiness, such as waiting for an
    install to reach a terminal state or for a remote resource to come up.
    """

    def __init__(
        self,
        interval: float = 1.0,
        timeout: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.interval = interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep

    def wait(self, predicate: Callable[[], T], description: str = "condition") -> T:
        """
        Call ``predicate`` until it returns a truthy value.

        :param predicate: Function evaluated on every tick
        :type predicate: Callable[[], T]
        :param description: What is being waited for, used in errors
        :type description: str
        :returns: The first truthy value returned by the predicate
        :rtype: T
        :raises PollTimeoutError: If the deadline passes first
        """
        deadline = self._clock() + self.timeout
        while True:
            value = predicate()
            if value:
                return value
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise PollTimeoutError(f"timed out after {self.timeout}s waiting for {description}")
            self._sleep(min(self.interval, remaining))
