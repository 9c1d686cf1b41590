"""Human checkpoints and the debugger-URL viewer side effect."""

from ctxpilot.human.gate import AutoApproveGate, Checkpoint, ConsoleGate, HumanGate, open_in_viewer

__all__ = ["AutoApproveGate", "Checkpoint", "ConsoleGate", "HumanGate", "open_in_viewer"]
