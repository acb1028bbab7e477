"""
Unit tests for ShaderManager source loading (no GL context required).

Run with: pytest tests/test_shader_manager.py -v
"""

import pytest

from rayscope.core.shader_manager import ShaderManager


@pytest.fixture
def shader_dir(tmp_path):
    (tmp_path / "common").mkdir()
    (tmp_path / "common" / "math.glsl").write_text("float twice(float x) { return 2.0 * x; }")
    (tmp_path / "local.glsl").write_text('#include <common/math.glsl>\nfloat local_value;')
    (tmp_path / "demo.frag").write_text(
        '#version 330\n#include <common/math.glsl>\n#include "local.glsl"\nvoid main() {}'
    )
    (tmp_path / "demo.vert").write_text("#version 330\nvoid main() {}")
    (tmp_path / "broken.frag").write_text('#include "missing.glsl"')
    return tmp_path


class TestSourceLoading:
    """Test include resolution and caching."""

    def test_includes_resolved_once(self, shader_dir):
        source = ShaderManager(shader_dir).load_shader_source("demo", "frag")
        assert "#include" not in source
        assert source.count("float twice") == 1
        assert "float local_value;" in source

    def test_missing_include(self, shader_dir):
        with pytest.raises(FileNotFoundError):
            ShaderManager(shader_dir).load_shader_source("broken", "frag")

    def test_missing_shader(self, shader_dir):
        with pytest.raises(FileNotFoundError):
            ShaderManager(shader_dir).load_shader_source("nope", "vert")

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ShaderManager(tmp_path / "absent")

    def test_program_needs_context(self, shader_dir):
        with pytest.raises(RuntimeError):
            ShaderManager(shader_dir).load_shader("demo", "demo")

    def test_list_available(self, shader_dir):
        shaders = ShaderManager(shader_dir).list_available_shaders()
        assert shaders == {'vert': ['demo'], 'frag': ['broken', 'demo']}


def test_packaged_shaders_resolve():
    manager = ShaderManager()
    source = manager.load_shader_source("volume", "frag")
    assert "tf_diffuse" in source
    assert "#include" not in source
    assert set(manager.list_available_shaders()['frag']) == {'present', 'volume'}
