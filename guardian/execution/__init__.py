from .runner import GuardianRunner, RunState
