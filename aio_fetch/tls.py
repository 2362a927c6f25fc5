import ssl
import threading

_trust_all_lock = threading.Lock()
_trust_all_context: ssl.SSLContext | None = None


def trust_all_ssl_context() -> ssl.SSLContext:
    """Process-wide SSL context that accepts any certificate for any host"""
    global _trust_all_context

    context = _trust_all_context
    if context is not None:
        return context

    with _trust_all_lock:
        if _trust_all_context is None:
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            _trust_all_context = context
        return _trust_all_context
