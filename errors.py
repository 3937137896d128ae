class PacketChatError(Exception):
    """Error base del chat. El mensaje se muestra tal cual al usuario."""


class NoUsableInterfaceError(PacketChatError):
    """Ninguna interfaz activa tiene una IPv4 que también vea el dispositivo de captura."""


class InvalidSelectionError(PacketChatError):
    """El usuario eligió un índice fuera de rango o algo que no es un número."""


class BindFailureError(PacketChatError):
    """No se pudo abrir el socket UDP hacia la dirección de broadcast."""
