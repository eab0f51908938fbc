"""Shared fixtures for core unit tests"""

import pytest

from dokupub.config import Settings
from dokupub.core.context import RenderContext
from dokupub.core.inline import InlineEngine
from dokupub.core.render import Renderer


SAMPLE_PAGE = """\
====== Heading 1 ======

A paragraph with **bold** text.

===== Heading 2 =====

  * item one
  * item two

<code python>
print("hello")
</code>

----

Footer paragraph.
"""


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings()


@pytest.fixture(name="renderer")
def renderer_fixture(settings):
    return Renderer(settings)


@pytest.fixture(name="ctx")
def ctx_fixture():
    return RenderContext()


@pytest.fixture(name="engine")
def engine_fixture(settings):
    return InlineEngine(settings)


@pytest.fixture(name="sample_page")
def sample_page_fixture():
    return SAMPLE_PAGE
