"""
Shader Manager for loading and compiling the GLSL programs of the OpenGL
backend and the viewer's present pass.

Supports ``#include "file.glsl"`` (relative to the including file) and
``#include <common/file.glsl>`` (relative to the shader directory).
"""

import re
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Union

if TYPE_CHECKING:
    import moderngl as mgl

DEFAULT_SHADER_DIR = Path(__file__).parent.parent / "shaders"

_INCLUDE_RE = re.compile(r'\s*#include\s+["<](.+?)[">]')


class ShaderManager:
    """
    Loads shader sources with include resolution and caches compiled programs.
    """

    def __init__(self, shader_dir: Union[str, Path, None] = None,
                 ctx: Optional["mgl.Context"] = None):
        """
        Initialize ShaderManager.

        Args:
            shader_dir: Directory containing shader files (default: packaged shaders)
            ctx: ModernGL context (if None, only sources can be loaded)
        """
        self.shader_dir = Path(shader_dir) if shader_dir is not None else DEFAULT_SHADER_DIR
        if not self.shader_dir.exists():
            raise FileNotFoundError(f"Shader directory does not exist: {self.shader_dir}")

        self.ctx = ctx
        self._shader_cache: Dict[str, str] = {}
        self._program_cache: Dict[str, "mgl.Program"] = {}

    def _resolve_includes(self, source: str, base_path: Path, seen: Set[Path]) -> str:
        result_lines = []

        for line in source.split('\n'):
            include_match = _INCLUDE_RE.match(line)
            if not include_match:
                result_lines.append(line)
                continue

            include_path = include_match.group(1)
            if include_path.startswith('common/'):
                include_file = self.shader_dir / include_path
            else:
                include_file = base_path.parent / include_path
            include_file = include_file.resolve()

            # Each file is pasted once per program
            if include_file in seen:
                continue
            if not include_file.exists():
                raise FileNotFoundError(f"Included shader file not found: {include_file}")

            seen.add(include_file)
            included = self._resolve_includes(include_file.read_text(), include_file, seen)
            result_lines.append(f"// Included from {include_file.name}")
            result_lines.extend(included.split('\n'))
            result_lines.append(f"// End include {include_file.name}")

        return '\n'.join(result_lines)

    def load_shader_source(self, shader_name: str, shader_type: str = 'frag') -> str:
        """
        Load shader source code with include resolution.

        Args:
            shader_name: Name of shader (without extension)
            shader_type: 'vert' or 'frag'

        Returns:
            Resolved shader source code
        """
        shader_path = self.shader_dir / f"{shader_name}.{shader_type}"
        if not shader_path.exists():
            raise FileNotFoundError(f"Shader not found: {shader_path}")

        cache_key = str(shader_path)
        if cache_key in self._shader_cache:
            return self._shader_cache[cache_key]

        resolved = self._resolve_includes(shader_path.read_text(), shader_path, set())
        self._shader_cache[cache_key] = resolved
        return resolved

    def load_shader(self, vertex_shader: str, fragment_shader: str) -> "mgl.Program":
        """
        Load and compile a shader program.

        Args:
            vertex_shader: Name of vertex shader (without extension)
            fragment_shader: Name of fragment shader (without extension)

        Returns:
            Compiled shader program
        """
        if self.ctx is None:
            raise RuntimeError("No OpenGL context; pass ctx to ShaderManager to compile programs")

        cache_key = f"{vertex_shader}:{fragment_shader}"
        if cache_key in self._program_cache:
            return self._program_cache[cache_key]

        vert_source = self.load_shader_source(vertex_shader, 'vert')
        frag_source = self.load_shader_source(fragment_shader, 'frag')

        try:
            program = self.ctx.program(vertex_shader=vert_source, fragment_shader=frag_source)
        except Exception as e:
            raise RuntimeError(
                f"Failed to compile shader program ({vertex_shader}, {fragment_shader}): {e}"
            ) from e

        self._program_cache[cache_key] = program
        return program

    def clear_cache(self):
        """Release compiled programs and forget cached sources"""
        for program in self._program_cache.values():
            program.release()
        self._shader_cache.clear()
        self._program_cache.clear()

    def list_available_shaders(self) -> Dict[str, List[str]]:
        """
        List available shaders in the shader directory.

        Returns:
            Dictionary with 'vert' and 'frag' keys containing lists of shader names
        """
        return {
            'vert': sorted(p.stem for p in self.shader_dir.glob("*.vert")),
            'frag': sorted(p.stem for p in self.shader_dir.glob("*.frag")),
        }
