import time
from pathlib import Path

from alarms.sounds import AlarmSoundPlayer


def main():
    player = AlarmSoundPlayer(Path("data/alarm.wav"))
    print("Playing alarm tone for 3 seconds...")
    player.start()
    time.sleep(3)
    player.stop()


if __name__ == "__main__":
    main()
