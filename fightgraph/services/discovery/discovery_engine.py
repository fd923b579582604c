"""
Fighter Discovery - Travessia BFS do grafo de lutadores.

Parte de um ou mais ids conhecidos, busca cada página (via ProfileSource,
sempre passando pelo rate limiter), grava o lutador no banco local e
enfileira os lutadores linkados no nível seguinte.

Estado da travessia (fronteira + processados) pertence à instância e é
CUMULATIVO entre chamadas: discover_from() e expand() sucessivos
continuam de onde as anteriores pararam. Para recomeçar do zero, crie
uma nova instância.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Union

from fightgraph.core.exceptions import NoStartingPointError, ScraperError, ScraperErrorType
from fightgraph.services.discovery_manager import AdaptiveRateLimiter, RateLimiter
from fightgraph.services.fighter_database import FighterDatabase
from fightgraph.services.scraper import ProfileSource

logger = logging.getLogger(__name__)

DEFAULT_EXPAND_SAMPLE_SIZE = 3


@dataclass
class DiscoveryResult:
    """
    Resultado de uma chamada de discovery.

    total_processed conta TENTATIVAS de busca (sucessos e falhas), assim
    como o conjunto de processados; os lutadores novos ficam em new_entities.
    """
    new_entities: List[str] = field(default_factory=list)
    total_processed: int = 0
    errors: List[str] = field(default_factory=list)
    depth_reached: int = 0
    entities_by_depth: Dict[int, List[str]] = field(default_factory=dict)

    def merge(self, other: "DiscoveryResult") -> "DiscoveryResult":
        """Agrega outro resultado neste (listas concatenadas, max da profundidade)."""
        self.new_entities.extend(other.new_entities)
        self.total_processed += other.total_processed
        self.errors.extend(other.errors)
        self.depth_reached = max(self.depth_reached, other.depth_reached)
        for depth, fighter_ids in other.entities_by_depth.items():
            self.entities_by_depth.setdefault(depth, []).extend(fighter_ids)
        return self


class FighterDiscovery:
    """
    Motor de discovery BFS.

    Invariantes:
    - Um id entra no mapa de profundidades no máximo uma vez por instância;
      a primeira descoberta vence, então a profundidade registrada é o menor
      número de saltos encontrado até agora
    - Nenhum id é buscado duas vezes pela mesma instância
    - Todos os ids de um nível são tentados antes de qualquer id do nível seguinte
    - Falha em um id é registrada em `errors` e a travessia continua
    """

    def __init__(
        self,
        source: ProfileSource,
        database: FighterDatabase,
        rate_limiter: Optional[RateLimiter] = None,
        sample_size: int = DEFAULT_EXPAND_SAMPLE_SIZE,
        max_depth: int = 1,
        max_per_depth: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.source = source
        self.database = database
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.sample_size = sample_size
        self.max_depth = max_depth
        self.max_per_depth = max_per_depth
        self._rng = rng or random.Random()

        # id -> profundidade da primeira descoberta (ordem de inserção = ordem BFS)
        self._depth_map: Dict[str, int] = {}
        self._processed: Set[str] = set()

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------

    @property
    def frontier(self) -> Dict[str, int]:
        """Ids descobertos e ainda não processados -> profundidade."""
        return {
            fighter_id: depth
            for fighter_id, depth in self._depth_map.items()
            if fighter_id not in self._processed
        }

    @property
    def processed(self) -> FrozenSet[str]:
        return frozenset(self._processed)

    def depth_of(self, fighter_id: str) -> Optional[int]:
        return self._depth_map.get(fighter_id)

    def get_stats(self) -> dict:
        return {
            **self.database.get_stats(),
            "depth_map_size": len(self._depth_map),
            "frontier_size": len(self.frontier),
            "processed": len(self._processed),
        }

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def discover_from(
        self,
        start_ids: Union[str, Iterable[str]],
        max_depth: Optional[int] = None,
        max_per_depth: Optional[int] = None,
    ) -> DiscoveryResult:
        """
        BFS a partir de um ou mais ids.

        Args:
            start_ids: Id (ou ids) semeados na profundidade 0
            max_depth: Profundidade máxima (inclusive); default da instância se omitido
            max_per_depth: Limite de lutadores novos por nível; default da instância se omitido
        """
        roots = [start_ids] if isinstance(start_ids, str) else list(start_ids)
        return await self._traverse(roots, max_depth, max_per_depth, revisit_stored=False)

    async def expand(
        self,
        max_depth: Optional[int] = None,
        max_per_depth: Optional[int] = None,
    ) -> DiscoveryResult:
        """
        Continua o discovery a partir de lutadores já presentes no banco.

        Sorteia até `sample_size` lutadores como novas raízes. Raízes já
        gravadas são buscadas de novo apenas para obter seus links; elas
        não contam como lutadores novos.

        Raises:
            NoStartingPointError: banco vazio
        """
        existing = self.database.get_all()
        if not existing:
            raise NoStartingPointError()

        count = min(self.sample_size, len(existing))
        starting_points = self._rng.sample(existing, count)
        logger.info(
            f"🔍 [Discovery] Expandindo a partir de: "
            f"{', '.join(f.id for f in starting_points)}"
        )

        result = DiscoveryResult()
        for fighter in starting_points:
            partial = await self._traverse(
                [fighter.id], max_depth, max_per_depth, revisit_stored=True
            )
            result.merge(partial)

        return result

    async def _traverse(
        self,
        roots: List[str],
        max_depth: Optional[int],
        max_per_depth: Optional[int],
        revisit_stored: bool,
    ) -> DiscoveryResult:
        if max_depth is None:
            max_depth = self.max_depth
        if max_per_depth is None:
            max_per_depth = self.max_per_depth

        if max_depth < 0:
            raise ScraperError(
                f"max_depth must be >= 0 (got {max_depth})",
                ScraperErrorType.CONFIGURATION_ERROR,
            )
        if max_per_depth is not None and max_per_depth < 1:
            raise ScraperError(
                f"max_per_depth must be >= 1 (got {max_per_depth})",
                ScraperErrorType.CONFIGURATION_ERROR,
            )

        result = DiscoveryResult()
        revisit = self._seed(roots, revisit_stored)

        for depth in range(max_depth + 1):
            pending = [
                fighter_id
                for fighter_id, fighter_depth in self._depth_map.items()
                if fighter_depth == depth and fighter_id not in self._processed
            ]
            if not pending:
                break

            result.depth_reached = depth
            logger.info(f"📊 [Discovery] Profundidade {depth}: {len(pending)} lutadores")

            for fighter_id in pending:
                if fighter_id in self._processed:
                    continue
                if fighter_id not in revisit and self.database.has_by_id(fighter_id):
                    continue

                succeeded = await self._process_fighter(
                    fighter_id, depth, max_depth, result, revisit
                )

                if (
                    succeeded
                    and max_per_depth is not None
                    and len(result.entities_by_depth.get(depth, [])) >= max_per_depth
                ):
                    logger.info(
                        f"⏹️ [Discovery] Limite de {max_per_depth} lutadores "
                        f"atingido na profundidade {depth}"
                    )
                    break

            logger.info(
                f"✅ [Discovery] Profundidade {depth} concluída: "
                f"{len(result.entities_by_depth.get(depth, []))} lutadores novos"
            )

        await self.database.save()

        logger.info(
            f"🎉 [Discovery] Concluído: {len(result.new_entities)} novos, "
            f"{result.total_processed} processados, {len(result.errors)} erros, "
            f"profundidade {result.depth_reached}"
        )
        return result

    def _seed(self, roots: List[str], revisit_stored: bool) -> Set[str]:
        """Semeia as raízes na profundidade 0. Retorna as raízes gravadas que serão revisitadas."""
        revisit: Set[str] = set()

        for fighter_id in roots:
            if fighter_id in self._processed:
                logger.debug(f"[Discovery] Raiz {fighter_id} já processada, ignorando")
                continue
            if self.database.has_by_id(fighter_id):
                if not revisit_stored:
                    logger.debug(f"[Discovery] Raiz {fighter_id} já está no banco, ignorando")
                    continue
                revisit.add(fighter_id)

            # Pendente em nível mais fundo: vira raiz sem duplicar a entrada
            self._depth_map[fighter_id] = 0

        return revisit

    async def _process_fighter(
        self,
        fighter_id: str,
        depth: int,
        max_depth: int,
        result: DiscoveryResult,
        revisit: Set[str],
    ) -> bool:
        """Busca um lutador, grava e enfileira os links. Retorna True se foi um lutador novo."""
        await self.rate_limiter.wait_for_slot()
        logger.debug(f"🔍 [Discovery] Profundidade {depth}: processando {fighter_id}")

        try:
            page = await self.source.fetch_fighter(fighter_id)
        except Exception as exc:
            message = f"Failed to process {fighter_id} at depth {depth}: {exc}"
            result.errors.append(message)
            detail = exc.get_log_message() if isinstance(exc, ScraperError) else str(exc)
            logger.warning(f"⚠️ [Discovery] Falha em {fighter_id} (profundidade {depth}): {detail}")
            self._record_outcome(success=False)
            return False
        finally:
            self._processed.add(fighter_id)
            result.total_processed += 1

        self._record_outcome(success=True)
        self.database.add(page.profile.name, fighter_id, page.profile.nickname)

        is_new = fighter_id not in revisit
        if is_new:
            result.new_entities.append(fighter_id)
            result.entities_by_depth.setdefault(depth, []).append(fighter_id)

        queued = 0
        if depth < max_depth:
            for linked_id in page.linked_ids:
                if (
                    linked_id in self._depth_map
                    or linked_id in self._processed
                    or self.database.has_by_id(linked_id)
                ):
                    continue
                self._depth_map[linked_id] = depth + 1
                queued += 1

        logger.debug(
            f"  ✅ {page.profile.name} -> {len(page.linked_ids)} links, "
            f"{queued} enfileirados"
        )
        return is_new

    def _record_outcome(self, success: bool) -> None:
        if not isinstance(self.rate_limiter, AdaptiveRateLimiter):
            return
        if success:
            self.rate_limiter.record_success()
        else:
            self.rate_limiter.record_failure()
