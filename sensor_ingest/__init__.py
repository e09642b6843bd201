"""Room sensor ingest service.

Recibe lecturas de sensores ambientales por MQTT (JSON o CSV), las
persiste, detecta sensores atascados en cero y publica comandos de
actuadores.
"""

__version__ = "1.0.0"
