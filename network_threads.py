import logging
import socket
import threading

from scapy.all import UDP, sniff
from scapy.error import Scapy_Exception

from config import CAPTURE_FILTER_TEMPLATE
from errors import BindFailureError
from state import Category
from utils import formatear_mensaje, limpiar_payload, mensaje_anuncio

logger = logging.getLogger(__name__)


class Transport:
    """
    Los dos canales del chat.
    - Envío: un socket UDP normal dirigido a la dirección de broadcast.
    - Recepción: captura promiscua con scapy filtrada al puerto del chat.

    La captura también ve nuestros propios broadcasts. Se reconocen porque su
    puerto origen es el puerto efímero que el sistema asignó a nuestro socket.
    """

    def __init__(self, endpoint, username, messages, socket_factory=socket.socket, sniffer=sniff):
        self.endpoint = endpoint
        self.username = username
        self.messages = messages
        self.sock = None
        self.local_port = None
        # Se llama después de guardar un mensaje recibido, normalmente para redibujar.
        self.on_message = None
        self._socket_factory = socket_factory
        self._sniff = sniffer

    def open(self):
        """
        Crea el socket de envío y anota el puerto origen que le asignó el sistema.
        Raises:
            BindFailureError: Si el socket no se puede crear o dirigir al broadcast.
        """
        destino = (self.endpoint.broadcast, self.endpoint.port)
        sock = None
        try:
            sock = self._socket_factory(socket.AF_INET, socket.SOCK_DGRAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            # connect() en UDP no envía nada, solo fija el destino y el puerto local.
            sock.connect(destino)
            self.local_port = sock.getsockname()[1]
        except PermissionError as e:
            if sock is not None:
                sock.close()
            raise BindFailureError(f"Permiso denegado al abrir el socket: {e}. Ejecuta el script con 'sudo'.") from e
        except OSError as e:
            if sock is not None:
                sock.close()
            raise BindFailureError(f"No se pudo abrir el socket hacia {destino[0]}:{destino[1]}: {e}") from e

        self.sock = sock
        logger.info("Socket abierto hacia %s:%d, puerto local %d", destino[0], destino[1], self.local_port)
        return self

    def announce(self):
        """Avisa a la red de que entramos. El anuncio no se guarda en el historial local."""
        return self.send(mensaje_anuncio(self.username), as_user=False)

    def send(self, text, as_user=True):
        """
        Envía una línea en un único datagrama, sin reintentos.
        Args:
            text (str): El texto a enviar.
            as_user (bool): Si es True se antepone "<usuario>: " y el mensaje se
                muestra en el historial como propio.
        Returns:
            bool: True si el sistema aceptó el datagrama.
        """
        payload = formatear_mensaje(self.username, text, as_user)

        # close() puede llegar desde otro hilo en cualquier momento
        sock = self.sock
        if sock is None:
            self.messages.append("No conectado", Category.ERROR)
            return False

        try:
            sock.send(payload.encode('utf-8'))
        except OSError as e:
            logger.warning("Fallo al enviar %r: %s", payload, e)
            self.messages.append(f"Error de envío: {e}", Category.ERROR)
            return False

        if as_user:
            self.messages.append(payload, Category.SELF)
        return True

    def handle_packet(self, packet):
        """
        Procesa un paquete capturado.
        Returns:
            bool: True si el paquete produjo un mensaje en el historial.
        """
        if UDP not in packet:
            return False

        udp = packet[UDP]
        if udp.sport == self.local_port:
            # Es nuestro propio broadcast
            logger.debug("Descartado eco propio desde el puerto %d", udp.sport)
            return False

        text = limpiar_payload(bytes(udp.payload))
        if not text:
            return False

        self.messages.append(text, Category.RECEIVED)
        self._notify()
        return True

    def receive_loop(self):
        """
        Bucle de captura. Bloquea hasta que el proceso termina.
        Si la captura no se puede abrir se informa en el chat y el hilo termina;
        el envío sigue funcionando.
        """
        filtro = CAPTURE_FILTER_TEMPLATE.format(port=self.endpoint.port)
        logger.info("Capturando en %s con el filtro %r", self.endpoint.capture_device, filtro)
        try:
            self._sniff(
                iface=self.endpoint.capture_device,
                filter=filtro,
                prn=self._on_packet,
                store=False,
                promisc=True,
            )
        except PermissionError:
            logger.error("Sin permisos para capturar en %s", self.endpoint.capture_device)
            self.messages.append("Error de captura: permiso denegado. Ejecuta el script con 'sudo'.", Category.ERROR)
            self._notify()
        except (OSError, Scapy_Exception) as e:
            logger.error("No se pudo capturar en %s: %s", self.endpoint.capture_device, e)
            self.messages.append(f"Error de captura: {e}", Category.ERROR)
            self._notify()

    def close(self):
        sock, self.sock = self.sock, None
        if sock is not None:
            sock.close()

    def _on_packet(self, packet):
        # scapy imprime lo que devuelva prn, así que aquí no se devuelve nada.
        self.handle_packet(packet)

    def _notify(self):
        if self.on_message is not None:
            self.on_message()


def start_receive_thread(transport):
    """Lanza el hilo de captura como daemon, igual que el resto de hilos de red."""
    receptor = threading.Thread(target=transport.receive_loop, name="captura", daemon=True)
    receptor.start()
    return receptor
