"""Fixture building: load, build in dependency order, tear down."""

from fixtureseed.fixture.builder import FixtureBuilder
from fixtureseed.fixture.hooks import HookKind, HookRegistry, global_hooks
from fixtureseed.fixture.materializer import SeedMaterializer
