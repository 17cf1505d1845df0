"""Services — one module per workflow stage.

Every public step function takes a SyncContext and returns a
StepResult; the workflow driver decides what a result means.
"""
