from netstrat.history.difference import Difference, StepDifference
from netstrat.history.step import Snapshot, Step
from netstrat.history.history import History

__all__ = ["Difference", "StepDifference", "Snapshot", "Step", "History"]
