from chatproxy.clients.workers_ai import run_model

__all__ = ["run_model"]
