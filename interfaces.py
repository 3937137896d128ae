"""
Selección de la interfaz de red.

Se cruzan dos listados distintos: las interfaces del sistema operativo (netifaces,
con el estado de psutil) y los dispositivos que libpcap puede capturar (scapy).
Una interfaz sirve si su IPv4 aparece en ambos.
"""
import ipaddress
import logging
from dataclasses import dataclass

import netifaces
import psutil
from scapy.all import conf

from config import CHAT_PORT
from errors import InvalidSelectionError, NoUsableInterfaceError
from utils import calcular_broadcast

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterfaceEntry:
    """Candidato: interfaz del sistema, su IPv4 y el dispositivo de captura equivalente."""
    interface: str
    ip: str
    capture_device: str


@dataclass(frozen=True)
class NetworkEndpoint:
    interface: str
    ip: str
    capture_device: str
    broadcast: str
    port: int = CHAT_PORT

    @classmethod
    def from_entry(cls, entry, port=CHAT_PORT):
        return cls(
            interface=entry.interface,
            ip=entry.ip,
            capture_device=entry.capture_device,
            broadcast=calcular_broadcast(entry.ip),
            port=port,
        )


def direcciones_sistema():
    """
    Lista las IPv4 de las interfaces activas que no son loopback.
    Returns:
        dict: {nombre_interfaz: [ip, ...]} en el orden que da el sistema.
    """
    estados = psutil.net_if_stats()
    resultado = {}
    for nombre in netifaces.interfaces():
        estado = estados.get(nombre)
        if estado is None or not estado.isup:
            continue
        if 'loopback' in estado.flags.split(','):
            continue

        ips = []
        for direccion in netifaces.ifaddresses(nombre).get(netifaces.AF_INET, []):
            ip = direccion.get('addr')
            if ip and not ipaddress.ip_address(ip).is_loopback:
                ips.append(ip)
        if ips:
            resultado[nombre] = ips
    return resultado


def dispositivos_captura():
    """
    Lista los dispositivos de captura que conoce scapy y sus IPv4.
    Returns:
        list: [(nombre_dispositivo, {ip, ...}), ...]
    """
    dispositivos = []
    for dispositivo in conf.ifaces.values():
        ips = set(dispositivo.ips.get(4, []))
        if dispositivo.ip:
            ips.add(dispositivo.ip)
        dispositivos.append((dispositivo.network_name, ips))
    return dispositivos


def emparejar(direcciones, dispositivos):
    """Devuelve un InterfaceEntry por cada IPv4 del sistema que también tenga un dispositivo de captura."""
    candidatos = []
    for nombre, ips in direcciones.items():
        for ip in ips:
            for dispositivo, ips_dispositivo in dispositivos:
                if ip in ips_dispositivo:
                    candidatos.append(InterfaceEntry(nombre, ip, dispositivo))
    return candidatos


def elegir_interfaz(candidatos, entrada=input, salida=print):
    """
    Muestra los candidatos y pide al usuario que elija uno por su índice.
    Args:
        candidatos (list[InterfaceEntry]): Las opciones, no vacías.
        entrada (callable): Lee la respuesta (por defecto input()).
        salida (callable): Muestra cada línea (por defecto print()).
    Returns:
        InterfaceEntry: El candidato elegido.
    Raises:
        InvalidSelectionError: Si la respuesta no es un índice válido.
    """
    salida("Interfaces disponibles:")
    for i, candidato in enumerate(candidatos):
        salida(f"  [{i}] {candidato.interface}  {candidato.ip}")

    try:
        respuesta = entrada("Elige la interfaz de red a utilizar: ")
    except EOFError:
        raise InvalidSelectionError("Selección inválida: no se recibió ninguna respuesta.") from None

    try:
        indice = int(respuesta.strip())
    except ValueError:
        raise InvalidSelectionError(f"Selección inválida: {respuesta.strip()!r} no es un número.") from None

    if not 0 <= indice < len(candidatos):
        raise InvalidSelectionError(f"Selección inválida: no existe la opción {indice}.")
    return candidatos[indice]


def resolve(entrada=input, salida=print, port=CHAT_PORT):
    """Encuentra las interfaces utilizables, pide una al usuario y devuelve su NetworkEndpoint."""
    try:
        direcciones = direcciones_sistema()
        dispositivos = dispositivos_captura()
    except OSError as e:
        raise NoUsableInterfaceError(f"No se pudieron obtener las interfaces de red: {e}") from e

    candidatos = emparejar(direcciones, dispositivos)
    logger.info("Interfaces candidatas: %s", candidatos)
    if not candidatos:
        raise NoUsableInterfaceError("No se encontró ninguna interfaz utilizable.")

    entry = elegir_interfaz(candidatos, entrada=entrada, salida=salida)
    endpoint = NetworkEndpoint.from_entry(entry, port=port)
    logger.info("Interfaz seleccionada: %s", endpoint)
    return endpoint
