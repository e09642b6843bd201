"""Core module - pipeline de ingesta y detección de fallas.

Estructura:
- domain/         → Reading, Failure, Command, familias de canales
- decoding/       → Detección de formato y parseo de payloads
- normalization/  → Field map → Reading canónico
- storage/        → Lecturas, ledger de fallas, log de comandos
- detection/      → Detector de rachas de ceros
- pipeline/       → Orquestación decode → store → detect
- resilience/     → Retry con backoff
- monitoring/     → Estadísticas de procesamiento
"""
