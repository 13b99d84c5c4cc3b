from typing import Protocol

from box import Box

from resolver.models import Diagnostics, PropertyMap


class ManifestInterpreter(Protocol):
    """
    Protocol for manifest interpreters.
    Implementations turn the source text of one manifest into a PropertyMap
    (declaration name -> string, or ordered list of strings).
    The graph code only depends on this protocol, so the concrete manifest
    grammar can be swapped without touching it.
    Examples:
        interpreter = FxManifestInterpreter()
        props = interpreter.interpret('dependency "es_extended"')
        print(props["dependency"])   # es_extended
    """

    @property
    def dialect(self) -> str: ...

    @property
    def info(self) -> Box:
        """
        Returns information about the interpreter,
          such as dialect, handled manifest files and recognized shapes, as a Box.
        """
        ...

    def interpret(
        self,
        source: str,
        *,
        resource: str | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> PropertyMap:
        """
        Interpret ``source`` and return its declarations.
        Statements the interpreter does not understand are dropped and reported
        to ``diagnostics``; text that cannot be parsed at all raises
        ManifestSyntaxError.
        """
        ...
