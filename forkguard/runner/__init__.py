from .runner import Task, describe_failure, fork_with_error_output

__all__ = ["fork_with_error_output", "describe_failure", "Task"]
