from delivery.output import deliver_history, deliver_result, print_progress

__all__ = ["deliver_history", "deliver_result", "print_progress"]
