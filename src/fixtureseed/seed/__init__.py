"""Seeds: programmatic fixture specifications with parent/child scoping."""

from fixtureseed.seed.node import Seed
from fixtureseed.seed.policy import ExcludeList, IncludeAll, IncludeList, IncludeNone, IncludePolicy
from fixtureseed.seed.value_spec import Candidates, Constant, Generator, Interval, ValueSpec
