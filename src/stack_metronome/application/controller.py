from collections.abc import Callable
from pathlib import Path

from stack_metronome.config import DEFAULT_STACK_NAME
from stack_metronome.domain.interfaces import StackRepository
from stack_metronome.domain.models import TempoSegment, TempoStack
from stack_metronome.domain.playback import PlaybackObserver, PlaybackSnapshot
from stack_metronome.domain.sequencer import SequencingEngine
from stack_metronome.infrastructure.midi_exporter import MIDIExporter
from stack_metronome.infrastructure.midi_importer import MIDIImporter


class MetronomeController:
    def __init__(
        self,
        repository: StackRepository,
        engine: SequencingEngine,
        exporter: MIDIExporter | None = None,
        importer: MIDIImporter | None = None,
    ) -> None:
        self.repository: StackRepository = repository
        self.engine: SequencingEngine = engine
        self.exporter: MIDIExporter = exporter or MIDIExporter()
        self.importer: MIDIImporter = importer or MIDIImporter()

    def stacks(self) -> list[TempoStack]:
        return self.repository.list()

    def create_stack(self, name: str, items: list[TempoSegment]) -> TempoStack:
        """Cria e armazena uma nova pilha. Nomes em branco recebem o nome padrão."""
        stack = TempoStack(name=name.strip() or DEFAULT_STACK_NAME, items=list(items))
        self.repository.add(stack)
        return stack

    def update_stack(self, stack: TempoStack) -> None:
        self.repository.update(stack)

    def delete_stack(self, stack_id: str) -> None:
        self.repository.remove(stack_id)

    def move_stack(self, from_index: int, to_index: int) -> None:
        self.repository.reorder(from_index, to_index)

    def play_stack(self, stack_id: str) -> None:
        """Inicia a reprodução da pilha armazenada com o id informado."""
        self.engine.start(self.repository.get(stack_id))

    def pause(self) -> None:
        self.engine.pause()

    def resume(self) -> None:
        self.engine.resume()

    def stop(self) -> None:
        self.engine.stop()

    def snapshot(self) -> PlaybackSnapshot:
        return self.engine.snapshot()

    def subscribe(self, observer: PlaybackObserver) -> Callable[[], None]:
        return self.engine.subscribe(observer)

    def export_midi(self, stack_id: str, file_path: Path) -> Path:
        """Exporta a pilha como faixa de cliques MIDI."""
        if file_path.suffix not in ['.mid', '.midi']:
            file_path = file_path.with_suffix('.mid')
        self.exporter.save(stack=self.repository.get(stack_id), file_path=file_path)
        return file_path

    def import_midi(self, file_path: Path) -> TempoStack:
        """Importa o mapa de tempo de um arquivo MIDI como uma nova pilha."""
        stack = self.importer.load(file_path)
        self.repository.add(stack)
        return stack
