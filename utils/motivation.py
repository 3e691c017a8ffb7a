# motivation.py
def get_motivation_text(rep_count: float, rep_goal: int = 0) -> str:
    """
    Generate motivational messages based on current rep count.
    Cycles through predefined messages to encourage user progress and
    switches to a goal message once the exercise's rep goal is reached.
    """

    motivational_messages = [
        "Nice and controlled!",
        "Keep that form tight!",
        "Strong rep, keep going!",
        "Breathe and stay steady!",
        "You're in the zone!",
        "Smooth movement, great work!",
        "Focus on the squeeze!",
        "That's how it's done!",
        "Stay strong, almost there!",
        "Form first, always!"
    ]

    if rep_count <= 0:
        return "Ready to start!"

    if rep_goal and rep_count >= rep_goal:
        return f"Rep {rep_count:g} - Goal of {rep_goal} reached!"

    # Cycle through messages based on completed reps to maintain variety
    message_index = (int(rep_count) - 1) % len(motivational_messages)
    selected_message = motivational_messages[message_index]

    return f"Rep {rep_count:g} - {selected_message}"
