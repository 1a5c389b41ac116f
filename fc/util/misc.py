# Formats a whole number of seconds the way the clock shows timers: H:MM:SS once an hour has passed, MM:SS before that.
def format_duration(total_seconds):
    total_seconds = max(0, int(total_seconds))
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


# Countdowns never show hours, minutes just keep counting past 59 (a 90 minute long break reads 90:00).
def format_countdown(total_seconds):
    minutes, seconds = divmod(max(0, int(total_seconds)), 60)
    return f"{minutes:02d}:{seconds:02d}"
