class MetronomeError(Exception):
    """Classe base para todos os erros do metrônomo."""


class InvalidSegmentError(MetronomeError, ValueError):
    """Segmento com BPM ou número de batidas não positivo."""


class EmptyStackError(MetronomeError):
    """Tentativa de reproduzir uma pilha sem segmentos."""


class InvalidStateError(MetronomeError):
    """Operação de reprodução chamada em um estado incompatível."""


class SoundPlaybackError(MetronomeError):
    """Falha ao emitir o som de uma batida."""


class PersistenceError(MetronomeError):
    """Falha ao codificar ou decodificar pilhas armazenadas."""
