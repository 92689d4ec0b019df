"""Binding generation from installed headers.

This module turns the public C headers installed into the isolated prefix
into an out-of-line cffi module (ABI mode).

Design:
    - Headers are only ever read from the prefix include directory, never
      from a source checkout
    - The requested headers are run through the C preprocessor in one
      translation unit, with GNU keyword extensions neutralised so the
      output is plain C99
    - pycparser parses the result; every declaration whose origin lies under
      the prefix include directory is kept, including headers the requested
      ones pull in. System typedefs they depend on are carried along unless
      cffi already knows the type
    - The kept declarations are handed to cffi's cdef and written with
      emit_python_code, atomically: either a complete binding surface
      exists at the output path or nothing new does

Using the generated module:
    from bindings import ffi
    lib = ffi.dlopen("caca")
"""

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from cffi import FFI, CDefError, FFIError, VerificationError, commontypes, model
from pycparser import c_ast, c_generator, c_parser

from ..packages.cache import PathResolver
from .command_runner import CommandLaunchError, CommandRunner
from .errors import BindingGenerationError

logger = logging.getLogger(__name__)


# Keywords and attributes the GNU, Clang and MSVC front ends accept but
# pycparser does not.
PREPROCESSOR_DEFINES: Tuple[str, ...] = (
    "-D__attribute__(x)=",
    "-D__extension__=",
    "-D__restrict=",
    "-D__restrict__=",
    "-D__inline=",
    "-D__inline__=",
    "-D__asm__(x)=",
    "-D__asm(x)=",
    "-D__declspec(x)=",
    "-D__builtin_va_list=void*",
    "-D__signed__=signed",
    "-D__const=const",
    "-D_Noreturn=",
    "-D_Nullable=",
    "-D_Nonnull=",
    "-D_Null_unspecified=",
    "-D__cdecl=",
    "-D__stdcall=",
    "-D_Float128=double",
    "-D__float128=double",
    "-D_Float64=double",
    "-D_Float64x=double",
    "-D_Float32=float",
    "-D_Float32x=float",
    "-U__BLOCKS__",
)

# Type names cffi resolves on its own (size_t, uint32_t, FILE, ...).
CFFI_KNOWN_TYPES: Set[str] = set(model.PrimitiveType.ALL_PRIMITIVE_TYPES) | set(
    commontypes.COMMON_TYPES
)


def is_module_name(name: str) -> bool:
    """True for a dotted Python module name such as ``caca`` or ``pkg._caca``."""
    return all(part.isidentifier() for part in name.split("."))


@dataclass(frozen=True)
class BindingSpec:
    """What to generate bindings for.

    Attributes:
        headers: Header paths relative to the prefix include directory, in parse order
        type_prefix: Module name cffi registers the binding types under
            (defaults to the output file's stem)
        library: Library the bindings describe (used in error reports)
    """

    headers: Tuple[str, ...]
    type_prefix: Optional[str] = None
    library: str = ""

    def __post_init__(self):
        if not self.headers:
            raise ValueError("BindingSpec needs at least one header")
        if self.type_prefix is not None and not is_module_name(self.type_prefix):
            raise ValueError(f"type_prefix must be a Python module name: {self.type_prefix!r}")


class _TypeNames(c_ast.NodeVisitor):
    """Collects the type names a declaration refers to."""

    def __init__(self):
        self.names: Set[str] = set()

    def visit_IdentifierType(self, node):
        self.names.update(node.names)


def _referenced_types(node: c_ast.Node) -> Set[str]:
    visitor = _TypeNames()
    visitor.visit(node)
    return visitor.names


class DeclarationCollector:
    """Picks the declarations of a translation unit that belong in the cdef."""

    def __init__(self, include_dir: Path):
        """Initialize collector.

        Args:
            include_dir: Prefix include directory; declarations from files
                under it are kept
        """
        self.include_root = os.path.normcase(os.path.realpath(include_dir))
        self._origins: Dict[str, bool] = {}

    def is_local(self, node: c_ast.Node) -> bool:
        coord = getattr(node, "coord", None)
        if coord is None or not coord.file:
            return False
        origin = str(coord.file)
        if origin not in self._origins:
            path = os.path.normcase(os.path.realpath(origin))
            self._origins[origin] = path.startswith(self.include_root + os.sep)
        return self._origins[origin]

    def collect(self, ast: c_ast.FileAST) -> List[c_ast.Node]:
        """Local declarations, preceded by the system typedefs they need.

        Function bodies and static declarations are dropped: neither is
        exported by the library.
        """
        local: List[c_ast.Node] = []
        system_typedefs: Dict[str, c_ast.Typedef] = {}

        for node in ast.ext:
            if not self.is_local(node):
                if isinstance(node, c_ast.Typedef):
                    system_typedefs[node.name] = node
                continue
            if isinstance(node, c_ast.Typedef):
                local.append(node)
            elif isinstance(node, c_ast.Decl):
                if "static" in node.storage:
                    logger.debug("Skipping static declaration %s", node.name)
                    continue
                decl = copy.copy(node)
                decl.storage = []
                decl.funcspec = []
                local.append(decl)

        local_names = {node.name for node in local if isinstance(node, c_ast.Typedef)}
        needed: Set[str] = set()
        pending: Set[str] = set()
        for node in local:
            pending |= _referenced_types(node)
        while pending:
            name = pending.pop()
            if name in needed or name in local_names or name in CFFI_KNOWN_TYPES:
                continue
            if name in system_typedefs:
                needed.add(name)
                pending |= _referenced_types(system_typedefs[name])

        carried = [node for node in system_typedefs.values() if node.name in needed]
        return carried + local


class BindingGenerator:
    """Generates a cffi binding module from installed headers."""

    def __init__(
        self,
        resolver: PathResolver,
        runner: CommandRunner,
        env: Optional[Mapping[str, str]] = None,
        cc: Optional[str] = None,
    ):
        """Initialize binding generator.

        Args:
            resolver: Path resolver for the current output directory
            runner: Runner used to invoke the C preprocessor
            env: Environment for the preprocessor
            cc: C compiler driver (defaults to $CC, then "cc")
        """
        self.resolver = resolver
        self.runner = runner
        self.env = dict(env) if env is not None else None
        self.cc = cc or (self.env or os.environ).get("CC") or "cc"

    def header_paths(self, spec: BindingSpec) -> List[Path]:
        """Absolute header paths inside the prefix include directory.

        Raises:
            BindingGenerationError: If a header is missing or outside the include directory
        """
        include_dir = self.resolver.include_dir
        paths = []
        for header in spec.headers:
            path = (include_dir / header).resolve()
            if include_dir.resolve() not in path.parents:
                raise BindingGenerationError(
                    spec.library, f"Header {header} is outside {include_dir}"
                )
            if not path.is_file():
                raise BindingGenerationError(
                    spec.library, f"Header not installed: {path}"
                )
            paths.append(path)
        return paths

    def preprocess(self, spec: BindingSpec, headers: Sequence[Path]) -> str:
        """Run the requested headers through the C preprocessor as one unit."""
        source = "".join(f'#include "{path.as_posix()}"\n' for path in headers)
        cmd = (
            [self.cc, "-E"]
            + list(PREPROCESSOR_DEFINES)
            + [f"-I{self.resolver.include_dir}", "-x", "c", "-"]
        )
        try:
            result = self.runner.run(cmd, env=self.env, input_text=source)
        except CommandLaunchError as e:
            raise BindingGenerationError(spec.library, str(e)) from e
        if not result.success:
            raise BindingGenerationError(
                spec.library,
                f"Preprocessing headers exited with status {result.returncode}",
                result.stdout,
                result.stderr,
            )
        return result.stdout

    def cdef_source(self, spec: BindingSpec, preprocessed: str) -> str:
        """Parse preprocessed C and return the declarations to bind as cdef text.

        Raises:
            BindingGenerationError: If the headers cannot be parsed
        """
        try:
            ast = c_parser.CParser().parse(preprocessed, filename="<headers>")
        except c_parser.ParseError as e:
            raise BindingGenerationError(spec.library, f"Failed to parse headers: {e}") from e

        generator = c_generator.CGenerator()
        lines: List[str] = []
        seen: Set[str] = set()
        for node in DeclarationCollector(self.resolver.include_dir).collect(ast):
            line = generator.visit(node) + ";"
            if line not in seen:
                seen.add(line)
                lines.append(line)
        return "\n".join(lines) + "\n"

    def create_ffi(self, spec: BindingSpec, cdef: str, module_name: str) -> FFI:
        """Declare the cdef text to cffi for an out-of-line ABI module.

        Raises:
            BindingGenerationError: If cffi rejects a declaration
        """
        ffi = FFI()
        try:
            ffi.cdef(cdef)
        except (CDefError, FFIError) as e:
            raise BindingGenerationError(spec.library, f"Cannot declare headers to cffi: {e}") from e
        ffi.set_source(module_name, None)
        return ffi

    def generate(self, spec: BindingSpec, output_path: Optional[Path] = None) -> Path:
        """Generate the binding module.

        Args:
            spec: Headers and module name
            output_path: Destination (defaults to the resolver's bindings path)

        Returns:
            Path of the written module

        Raises:
            BindingGenerationError: If any header cannot be read or parsed, or the
                output cannot be written
        """
        output_path = Path(output_path or self.resolver.bindings_path)
        headers = self.header_paths(spec)

        logger.info("Generating bindings from %s", ", ".join(spec.headers))
        cdef = self.cdef_source(spec, self.preprocess(spec, headers))
        logger.debug("cdef for %s:\n%s", spec.library, cdef)
        ffi = self.create_ffi(spec, cdef, spec.type_prefix or output_path.stem)

        temp_path = output_path.with_name(output_path.name + ".tmp")
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            ffi.emit_python_code(str(temp_path))
            os.replace(temp_path, output_path)
        except (CDefError, FFIError, VerificationError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise BindingGenerationError(
                spec.library, f"Cannot emit bindings: {e}"
            ) from e
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise BindingGenerationError(
                spec.library, f"Couldn't write bindings to {output_path}: {e}"
            ) from e

        logger.info("Wrote %s", output_path)
        return output_path
