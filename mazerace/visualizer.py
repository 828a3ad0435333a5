#Pygame view of a lane race: maze, goal, agents and a benchmark HUD

from __future__ import annotations

import pygame

from .benchmark import BenchmarkTracker
from .race import Race


class RaceViewer:
    #SPACE start/pause/resume, R reset, M next difficulty, D rerun doubling, F fullscreen, ESC quit

    def __init__(self, tracker: BenchmarkTracker, race: Race, fps=30, ticks_per_frame=1, hud_width=340):
        self.tracker = tracker
        self.race = race
        self.fps = fps
        self.ticks_per_frame = ticks_per_frame
        self.hud_width = hud_width

    def _restart(self):
        self.tracker.reset()
        self.race.spawn()

    def _handle_key(self, key):
        tracker = self.tracker
        if key == pygame.K_SPACE:
            if tracker.is_paused:
                tracker.resume()
            elif tracker.is_active:
                tracker.pause()
            elif not tracker.is_complete:
                tracker.start()
        elif key == pygame.K_r:
            self._restart()
        elif key == pygame.K_m:
            tracker.cycle_difficulty()
            tracker.regenerate_maze()
            self._restart()
        elif key == pygame.K_d:
            tracker.run_doubling_experiment()

    def _hud_lines(self):
        tracker = self.tracker
        status = ""
        if tracker.is_complete:
            status = " [COMPLETE]"
        elif tracker.is_paused:
            status = " [PAUSED]"
        lines = [
            ("Benchmark", (255, 255, 255)),
            (f"Time: {tracker.elapsed_ms() / 1000.0:.1f}s{status}", (235, 235, 235)),
            (tracker.complexity_info(), (235, 235, 235)),
        ]
        for stat in tracker.standings():
            rank = f"#{stat.rank}" if stat.rank else "  "
            first = f"{stat.first_arrival_ms / 1000.0:.1f}s" if stat.first_arrival_ms >= 0 else "-"
            lines.append((
                f"{rank} {stat.name}: {stat.arrived_agents}/{stat.total_agents} first {first} "
                f"cpu {stat.avg_compute_ms:.2f}ms",
                stat.color,
            ))
        lines.append((f"Arrived: {tracker.total_arrivals()}/{tracker.total_agents()}", (235, 235, 235)))
        if tracker.doubling_results:
            lines.append(("Doubling (N, ms, ratio, est)", (255, 255, 255)))
            for row in tracker.doubling_results:
                lines.append((
                    f"{row.algo_name} N={row.problem_size} {row.time_ms:.3f} x{row.ratio:.2f} {row.estimated_big_o}",
                    (200, 200, 200),
                ))
        lines.append(("SPACE run/pause  R reset  M level  D doubling", (160, 160, 160)))
        return lines

    def run(self):
        tracker = self.tracker
        grid = tracker.grid

        pygame.init()
        window_size = (tracker.width + self.hud_width, tracker.height)
        screen = pygame.display.set_mode(window_size, pygame.RESIZABLE)
        pygame.display.set_caption("Maze Race Benchmark")
        font = pygame.font.SysFont(None, 18)
        clock = pygame.time.Clock()
        fullscreen = False
        last_window_size = window_size

        colors = {
            "background": (10, 10, 10),
            "wall": (80, 80, 80),
            "goal": (255, 215, 0),
            "goal_inner": (255, 255, 0),
            "hud": (0, 0, 0),
        }

        #Draws semi transparent overlays so crowded lanes stay readable
        def draw_alpha_rect(surface, color, rect, alpha):
            overlay = pygame.Surface((rect.width, rect.height), pygame.SRCALPHA)
            overlay.fill((*color, alpha))
            surface.blit(overlay, rect.topleft)

        running = True
        while running:
            clock.tick(self.fps)
            for event in pygame.event.get():
                if event.type == pygame.QUIT or (
                    event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE
                ):
                    running = False
                if event.type == pygame.VIDEORESIZE and not fullscreen:
                    last_window_size = (event.w, event.h)
                    screen = pygame.display.set_mode(last_window_size, pygame.RESIZABLE)
                if event.type == pygame.KEYDOWN and event.key == pygame.K_f:
                    fullscreen = not fullscreen
                    if fullscreen:
                        info = pygame.display.Info()
                        screen = pygame.display.set_mode((info.current_w, info.current_h), pygame.FULLSCREEN)
                    else:
                        screen = pygame.display.set_mode(last_window_size, pygame.RESIZABLE)
                elif event.type == pygame.KEYDOWN:
                    self._handle_key(event.key)

            for _ in range(self.ticks_per_frame):
                self.race.tick()

            screen.fill(colors["background"])

            #the maze is re-read every frame since M and D rebuild it in place
            cs = grid.cell_size
            for obs in tracker.obstacles:
                pygame.draw.rect(screen, colors["wall"], pygame.Rect(obs.x * cs, obs.y * cs, obs.width * cs, obs.height * cs))

            goal = (int(tracker.goal_x), int(tracker.goal_y))
            pygame.draw.circle(screen, colors["goal"], goal, 20)
            pygame.draw.circle(screen, colors["goal_inner"], goal, 10)

            for agent in self.race.agents:
                color = tracker.stats[agent.lane].color
                rect = pygame.Rect(int(agent.x) - 2, int(agent.y) - 2, 4, 4)
                draw_alpha_rect(screen, color, rect, 120 if agent.arrived else 230)

            hud_rect = pygame.Rect(tracker.width, 0, self.hud_width, screen.get_height())
            pygame.draw.rect(screen, colors["hud"], hud_rect)
            pad = 6
            line_height = 18
            for i, (text, color) in enumerate(self._hud_lines()):
                surface = font.render(text, True, color)
                screen.blit(surface, (hud_rect.x + pad, hud_rect.y + pad + i * line_height))

            pygame.display.flip()

        pygame.quit()
