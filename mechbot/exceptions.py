class BotDecisionException(Exception):
    """
    A decision engine was asked to act when it cannot.

    Raised when the orchestrator invokes an engine for a player that has no
    unit the engine could act for (e.g. movement with every unit already
    moved). Always propagates to the caller.
    """

    def __init__(self, message: str, engine_name: str, player_id):
        super().__init__(message)
        self.engine_name = engine_name
        self.player_id = player_id

    def __str__(self):
        return f"[{self.engine_name}] {self.args[0]} (player {self.player_id})"
