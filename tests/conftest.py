"""
Shared fixtures: a recording backend and surface so the loop and engine run
without an OpenGL context.
"""

import numpy as np
import pytest

from rayscope.core.engine import Engine
from rayscope.core.render_engine import FrameBufferMode, RenderBackend
from rayscope.manipulators import ManipulatorMode
from rayscope.renderers.render_loop import RenderLoop, Surface


class FakeBackend(RenderBackend):
    """Backend recording every call; fills the color buffer with a constant"""

    def __init__(self, fill: int = 0):
        self.fill = fill
        self.commits = []
        self.reshapes = []
        self.renders = []
        self.released = False

    def commit(self, state):
        self.commits.append(state)

    def reshape(self, width, height):
        self.reshapes.append((width, height))

    def render(self, camera, output, frame_number=0):
        self.renders.append((camera.get_position(), camera.get_target(), frame_number))
        output.color_buffer[...] = self.fill

    def release(self):
        self.released = True


class FakeSurface(Surface):
    """Surface recording what the loop asked it to do"""

    def __init__(self):
        self.presents = []
        self.clears = 0
        self.redraws = 0
        self.fullscreen = []
        self.titles = []

    def present(self, buffer, width, height, pixel_format):
        self.presents.append((np.array(buffer, copy=True), width, height, pixel_format))

    def clear(self):
        self.clears += 1

    def request_redraw(self):
        self.redraws += 1

    def set_fullscreen(self, fullscreen):
        self.fullscreen.append(fullscreen)

    def set_title(self, title):
        self.titles.append(title)


ALL_MODES = ManipulatorMode.INSPECT_CENTER | ManipulatorMode.FLYING


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def engine(backend):
    return Engine(backend=backend, seed=1234)


@pytest.fixture
def loop(engine, surface):
    """Loop with both manipulators, inspect mode active, attached to an 800x600 surface"""
    render_loop = RenderLoop([], FrameBufferMode.COLOR, ManipulatorMode.INSPECT_CENTER,
                             ALL_MODES, engine)
    render_loop.create(surface, "test", 800, 600)
    return render_loop
