"""Card kinds and the in-memory game model.

``GameState`` is the authoritative record for one game code while its
session is resident. ``to_dict``/``from_dict`` give the JSON shape used both
for snapshots and (with ``public=True``) for room broadcasts.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CardKind(Enum):
    GUARD = 1
    PRIEST = 2
    BARON = 3
    HANDMAID = 4
    PRINCE = 5
    KING = 6
    COUNTESS = 7
    PRINCESS = 8

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_label(cls, label: str) -> "CardKind":
        """Look a kind up by its display name ("Guard", "Priest", ...)."""
        try:
            return cls[str(label).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown card: {label!r}")


# Kinds whose effect is aimed at another player
TARGETED_KINDS = frozenset({
    CardKind.GUARD,
    CardKind.PRIEST,
    CardKind.BARON,
    CardKind.PRINCE,
    CardKind.KING,
})


@dataclass(frozen=True)
class Card:
    kind: CardKind

    @property
    def name(self) -> str:
        return self.kind.label

    @property
    def value(self) -> int:
        return self.kind.value

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'value': self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        return cls(CardKind.from_label(data['name']))


@dataclass
class Player:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    tokens: int = 0
    eliminated: bool = False
    protected: bool = False
    discards: List[Card] = field(default_factory=list)

    def eliminate(self) -> None:
        """Knock the player out of the round, revealing the hand face up."""
        self.eliminated = True
        self.discards.extend(self.hand)
        self.hand = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'hand': [c.to_dict() for c in self.hand],
            'tokens': self.tokens,
            'eliminated': self.eliminated,
            'protected': self.protected,
            'discards': [c.to_dict() for c in self.discards],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        return cls(
            id=data['id'],
            name=data['name'],
            hand=[Card.from_dict(c) for c in data.get('hand') or []],
            tokens=int(data.get('tokens') or 0),
            eliminated=bool(data.get('eliminated')),
            protected=bool(data.get('protected')),
            discards=[Card.from_dict(c) for c in data.get('discards') or []],
        )


@dataclass
class GameState:
    code: str
    players: List[Player] = field(default_factory=list)
    deck: List[Card] = field(default_factory=list)  # last element is the next draw
    burn_card: Optional[Card] = None
    current_player_index: int = 0
    started: bool = False
    round: int = 0
    finished: bool = False
    winner_id: Optional[str] = None
    log: List[str] = field(default_factory=list)
    chat: List[Dict[str, Any]] = field(default_factory=list)

    def player_by_id(self, player_id: Optional[str]) -> Optional[Player]:
        if player_id is None:
            return None
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def player_by_name(self, name: str) -> Optional[Player]:
        for p in self.players:
            if p.name == name:
                return p
        return None

    @property
    def current_player(self) -> Optional[Player]:
        if not self.players:
            return None
        return self.players[self.current_player_index]

    def active_players(self) -> List[Player]:
        return [p for p in self.players if not p.eliminated]

    def all_cards(self) -> List[Card]:
        """Every card of the round: deck, burn card, hands and discards."""
        cards = list(self.deck)
        if self.burn_card is not None:
            cards.append(self.burn_card)
        for p in self.players:
            cards.extend(p.hand)
            cards.extend(p.discards)
        return cards

    def to_dict(self, public: bool = False) -> Dict[str, Any]:
        data = {
            'code': self.code,
            'players': [p.to_dict() for p in self.players],
            'currentPlayerIndex': self.current_player_index,
            'started': self.started,
            'round': self.round,
            'finished': self.finished,
            'winnerId': self.winner_id,
            'log': list(self.log),
            'chat': list(self.chat),
            'deckCount': len(self.deck),
        }
        if not public:
            data['deck'] = [c.to_dict() for c in self.deck]
            data['burnCard'] = self.burn_card.to_dict() if self.burn_card else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        burn = data.get('burnCard')
        return cls(
            code=data['code'],
            players=[Player.from_dict(p) for p in data.get('players') or []],
            deck=[Card.from_dict(c) for c in data.get('deck') or []],
            burn_card=Card.from_dict(burn) if burn else None,
            current_player_index=int(data.get('currentPlayerIndex') or 0),
            started=bool(data.get('started')),
            round=int(data.get('round') or 0),
            finished=bool(data.get('finished')),
            winner_id=data.get('winnerId'),
            log=list(data.get('log') or []),
            chat=list(data.get('chat') or []),
        )
