"""Exceptions raised while building an outbreak case map."""


class OutbreakMapError(Exception):
    """Base class for every failure that aborts a render."""


class FetchFailure(OutbreakMapError):
    """A data source was unreachable or returned malformed data."""

    def __init__(self, source, reason):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Could not load {self.source}: {reason}")


class UnmatchedRegionError(OutbreakMapError):
    """Case regions normalized to names with no boundary polygon."""

    def __init__(self, regions, case_count):
        self.regions = sorted(regions)
        self.case_count = int(case_count)
        super().__init__(
            f"{len(self.regions)} region(s) with {self.case_count:,} cases have no boundary polygon: "
            + ", ".join(self.regions)
        )
