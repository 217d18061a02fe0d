"""Fixture source loading: find and decode fixture files."""

from fixtureseed.source_loader.reader import FixtureSourceReader, SourceFormat
