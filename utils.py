from config import ANNOUNCE_TEMPLATE, INPUT_PROMPT, USER_MESSAGE_TEMPLATE


def calcular_broadcast(ip):
    """
    Calcula la dirección de broadcast de la subred de una IP.
    Se reemplaza el último octeto por 255, como si la red fuera siempre /24.
    La máscara real de la interfaz no se consulta: con máscaras distintas de
    /24 el resultado no es el broadcast verdadero de la subred.
    Ejemplo: "192.168.1.42" -> "192.168.1.255"
    Args:
        ip (str): La dirección IPv4 en formato decimal con puntos.
    Returns:
        str: La dirección de broadcast.
    """
    octetos = ip.strip().split('.')
    if len(octetos) != 4 or not all(o.isdigit() and int(o) <= 255 for o in octetos):
        raise ValueError(f"Dirección IPv4 inválida: {ip!r}")
    return '.'.join(str(int(o)) for o in octetos[:3]) + '.255'


def partir_lineas(texto, ancho):
    """
    Corta un texto en líneas de 'ancho' caracteres exactos (la última puede ser más corta).
    El corte es por columnas, no por palabras.
    Args:
        texto (str): El texto a cortar.
        ancho (int): Columnas disponibles.
    Returns:
        list[str]: Las líneas resultantes. Un texto vacío produce una línea vacía.
    """
    if ancho < 1:
        return [texto]
    lineas = [texto[i:i + ancho] for i in range(0, len(texto), ancho)]
    return lineas or ['']


def recortar_entrada(texto, ancho):
    """
    Construye la barra de entrada ("> " + texto) ajustada al ancho de la pantalla.
    Si no cabe se conservan los últimos 'ancho' caracteres, para que siempre se vea
    lo que el usuario acaba de escribir.
    """
    barra = INPUT_PROMPT + texto
    if ancho < 1:
        return ''
    if len(barra) > ancho:
        barra = barra[-ancho:]
    return barra


def formatear_mensaje(username, texto, como_usuario):
    """Devuelve el payload a enviar: "<usuario>: <texto>" o el texto tal cual."""
    if como_usuario:
        return USER_MESSAGE_TEMPLATE.format(username=username, text=texto)
    return texto


def mensaje_anuncio(username):
    return ANNOUNCE_TEMPLATE.format(username=username)


def limpiar_payload(datos):
    """
    Convierte el payload UDP capturado en texto.
    Quita el relleno de bytes nulos (las tramas cortas se rellenan hasta 60 bytes),
    decodifica en UTF-8 sin fallar ante bytes inválidos y elimina los espacios
    de los extremos.
    Args:
        datos (bytes): El payload crudo.
    Returns:
        str: El texto limpio, posiblemente vacío.
    """
    return datos.strip(b'\x00').decode('utf-8', errors='replace').strip()
