import matplotlib.pyplot as plt
import matplotlib.animation as animation

from heat_simulation.simulation import HeatSimulation


class FrameRenderer:
    """FuncAnimation callback: advance one frame and push the bitmap to the image."""

    def __init__(self, simulation: HeatSimulation, image) -> None:
        self.simulation = simulation
        self.image = image

    def __call__(self, frame):
        self.simulation.request_frame()
        self.image.set_data(self.simulation.render_rgba())
        return [self.image]


def build_animation(simulation: HeatSimulation, frames=None, interval: int = 30):
    # Prepare matplotlib figure
    fig, ax = plt.subplots()
    img = ax.imshow(simulation.render_rgba(), interpolation='nearest', origin='lower')
    ax.axis('off')
    plt.title("2D Heat Diffusion")

    renderer = FrameRenderer(simulation, img)
    ani = animation.FuncAnimation(
        fig, renderer, frames=frames, interval=interval, blit=True, cache_frame_data=False
    )
    return fig, ani


def show(simulation: HeatSimulation, frames=None, interval: int = 30) -> None:
    """Run the animation window; the simulation is torn down when it closes."""
    fig, ani = build_animation(simulation, frames=frames, interval=interval)
    try:
        plt.show()
    finally:
        simulation.teardown()
        plt.close(fig)
