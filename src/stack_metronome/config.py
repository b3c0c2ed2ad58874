import os
from pathlib import Path
from typing import Final

# Caminho padrão para o SoundFont
DEFAULT_SOUNDFONT: Final[Path] = Path('FluidR3_GM.sf2')

# Diretório de dados do usuário (XDG)
DATA_DIR: Final[Path] = (
    Path(os.environ.get('XDG_DATA_HOME', Path.home() / '.local' / 'share'))
    / 'stack-metronome'
)
STACKS_FILE: Final[Path] = DATA_DIR / 'stacks.json'

# Canal de percussão do General MIDI (canal 10, índice 9)
PERCUSSION_CHANNEL: Final[int] = 9
ACCENT_NOTE: Final[int] = 76  # Hi Wood Block
TICK_NOTE: Final[int] = 77  # Low Wood Block
ACCENT_VELOCITY: Final[int] = 127
TICK_VELOCITY: Final[int] = 90

# Duração de cada clique antes do note off
CLICK_GATE_SECONDS: Final[float] = 0.05

# Limites usados pelo editor de pilhas
MIN_BPM: Final[int] = 30
MAX_BPM: Final[int] = 300
MIN_BEATS: Final[int] = 1
MAX_BEATS: Final[int] = 64
DEFAULT_BPM: Final[int] = 100
DEFAULT_BEATS: Final[int] = 16
BPM_STEP: Final[int] = 10

DEFAULT_STACK_NAME: Final[str] = 'Nova pilha'
SAMPLE_STACK_NAME: Final[str] = 'Aquecimento'
