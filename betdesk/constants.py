def k_history(game_type: str) -> str:
    return f"betdesk:history:{game_type}"

def k_last_result(game_type: str) -> str:
    return f"betdesk:last:{game_type}"
